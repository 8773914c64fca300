"""Feedback responsiveness: how visibly critique flows back into the content."""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime
from typing import Dict, List

from ..config import EngineConfig
from ..models import ActivityLog, ComponentScore, Event, EventKind, FactorScore
from ..text import compile_alternation
from .base import ScoringInputs, component, describe, neutral


class FeedbackScorer:
    name = "feedback"

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        self._feedback = compile_alternation(config.scoring.feedback_terms, escape=True)

    def score(self, inputs: ScoringInputs) -> ComponentScore:
        activity = inputs.activity
        open_issues, open_rate = self.open_issue_factor(activity)
        resolution, resolution_rate = self.resolution_factor(activity)
        integration, integration_rate = self.integration_factor(activity)
        history, history_rate = self.feedback_commit_factor(activity)

        details = [
            describe("Open issue response rate", open_issues, f"{open_rate:.2f}"),
            describe("Issue resolution rate", resolution, f"{resolution_rate:.2f}"),
            describe("PR review integration rate", integration, f"{integration_rate:.2f}"),
            describe("Feedback-driven commit rate", history, f"{history_rate:.2f}"),
        ]
        factors = [open_issues, resolution, integration, history]
        return component(self.name, factors, self.config.scoring.feedback_weights, details)

    def open_issue_factor(self, activity: ActivityLog) -> tuple[FactorScore, float]:
        if not activity.is_available("issues", "issue_comments"):
            return neutral(self.config, "open_issues", activity.unavailable_reason("issues", "issue_comments")), 0.0
        open_issues = [
            event for event in activity.of_kind(EventKind.ISSUE_OPEN) if event.payload.get("state") == "open"
        ]
        if not open_issues:
            return neutral(self.config, "open_issues", "no open issues"), 0.0

        responders: Dict[str, set[str]] = defaultdict(set)
        for comment in activity.of_kind(EventKind.ISSUE_COMMENT):
            responders[comment.target_ref].add(comment.actor)
        answered = sum(
            1
            for issue in open_issues
            if any(self.is_maintainer(login) for login in responders.get(issue.target_ref, ()))
        )
        rate = answered / len(open_issues)
        return FactorScore.computed("open_issues", 0.5 + 0.5 * rate), rate

    def resolution_factor(self, activity: ActivityLog) -> tuple[FactorScore, float]:
        if not activity.is_available("issues", "revision_history"):
            return neutral(self.config, "resolution", activity.unavailable_reason("issues", "revision_history")), 0.0
        closed = [
            event for event in activity.of_kind(EventKind.ISSUE_OPEN) if event.payload.get("state") == "closed"
        ]
        if not closed:
            return neutral(self.config, "resolution", "no closed issues"), 0.0

        messages = [str(event.payload.get("message", "")) for event in activity.of_kind(EventKind.COMMIT)]
        referenced = 0
        for issue in closed:
            pattern = re.compile(rf"#{int(issue.payload['number'])}\b")
            if any(pattern.search(message) for message in messages):
                referenced += 1
        rate = referenced / len(closed)
        return FactorScore.computed("resolution", 0.5 + 0.5 * rate), rate

    def integration_factor(self, activity: ActivityLog) -> tuple[FactorScore, float]:
        sources = ("pulls", "review_comments", "pull_commits")
        if not activity.is_available(*sources):
            return neutral(self.config, "pr_integration", activity.unavailable_reason(*sources)), 0.0

        earliest_review: Dict[str, datetime] = {}
        for comment in activity.of_kind(EventKind.PR_COMMENT):
            if comment.payload.get("origin") != "review":
                continue
            current = earliest_review.get(comment.target_ref)
            if current is None or comment.timestamp < current:
                earliest_review[comment.target_ref] = comment.timestamp

        commits: Dict[str, List[Event]] = defaultdict(list)
        for commit in activity.of_kind(EventKind.PR_COMMIT):
            commits[commit.target_ref].append(commit)

        reviewed = [
            pull
            for pull in activity.of_kind(EventKind.PR_OPEN)
            if pull.payload.get("merged") and pull.target_ref in earliest_review
        ]
        if not reviewed:
            return neutral(self.config, "pr_integration", "no reviewed merged pull requests"), 0.0

        integrated = sum(
            1
            for pull in reviewed
            if any(commit.timestamp > earliest_review[pull.target_ref] for commit in commits[pull.target_ref])
        )
        rate = integrated / len(reviewed)
        return FactorScore.computed("pr_integration", 0.5 + 0.5 * rate), rate

    def feedback_commit_factor(self, activity: ActivityLog) -> tuple[FactorScore, float]:
        if not activity.is_available("revision_history"):
            return neutral(self.config, "feedback_commits", activity.unavailable_reason("revision_history")), 0.0
        commits = activity.of_kind(EventKind.COMMIT)
        if not commits:
            return neutral(self.config, "feedback_commits", "no commits"), 0.0
        matched = sum(1 for commit in commits if self._feedback.search(str(commit.payload.get("message", ""))))
        rate = matched / len(commits)
        multiplier = self.config.scoring.feedback_commit_multiplier
        return FactorScore.computed("feedback_commits", min(1.0, multiplier * rate)), rate

    def is_maintainer(self, login: str) -> bool:
        maintainers = self.config.platform.maintainers
        if maintainers:
            return login in maintainers
        owner = self.config.platform.owner
        return (owner is not None and login == owner) or "author" in login


__all__ = ["FeedbackScorer"]
