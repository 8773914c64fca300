"""Tests for the feedback responsiveness component."""

from __future__ import annotations

from pathlib import Path

import pytest

from distillmeta.config import EngineConfig
from distillmeta.models import EventKind, RepoManifest
from distillmeta.scoring import FeedbackScorer, ScoringInputs
from tests._fixtures.activity import activity_log, commit, event
from tests._fixtures.repo_builder import at


def _config() -> EngineConfig:
    config = EngineConfig(root=Path("/repo"))
    config.platform.repository = "octo/notes"
    return config


def test_feedback_commit_rate_is_amplified() -> None:
    commits = [
        commit("a", "Ada", at(1), "Fix typo in intro"),
        commit("b", "Ada", at(2), "Address reviewer feedback"),
        commit("c", "Bo", at(3), "Add section"),
        commit("d", "Bo", at(4), "Draft conclusion"),
        commit("e", "Bo", at(5), "Rename figure"),
    ]

    factor, rate = FeedbackScorer(_config()).feedback_commit_factor(activity_log(commits))

    assert rate == pytest.approx(0.4)
    assert factor.value == pytest.approx(1.0)


def test_unavailable_platform_scores_neutral() -> None:
    activity = activity_log(unavailable=["issues", "issue_comments", "pulls", "review_comments", "pull_commits"])

    result = FeedbackScorer(_config()).score(
        ScoringInputs(documents=[], activity=activity, manifest=RepoManifest(root="/repo", files=[]))
    )

    open_issues = result.factor("open_issues")
    assert open_issues.value == pytest.approx(0.5)
    assert open_issues.available is False
    assert "platform access disabled" in (open_issues.note or "")
    assert result.factor("pr_integration").available is False
    assert any("defaulted to 0.50" in line for line in result.details)


def test_open_issue_response_counts_maintainer_replies() -> None:
    events = [
        event(EventKind.ISSUE_OPEN, "reader", at(1), "issues/1", state="open", number=1),
        event(EventKind.ISSUE_OPEN, "reader", at(2), "issues/2", state="open", number=2),
        event(EventKind.ISSUE_COMMENT, "octo", at(3), "issues/1"),
        event(EventKind.ISSUE_COMMENT, "stranger", at(3), "issues/2"),
    ]

    factor, rate = FeedbackScorer(_config()).open_issue_factor(activity_log(events))

    assert rate == pytest.approx(0.5)
    assert factor.value == pytest.approx(0.75)


def test_configured_maintainers_replace_owner_rule() -> None:
    config = _config()
    config.platform.maintainers = ["editor"]
    scorer = FeedbackScorer(config)

    assert scorer.is_maintainer("editor")
    assert not scorer.is_maintainer("octo")


def test_resolution_requires_issue_reference_in_commits() -> None:
    events = [
        event(EventKind.ISSUE_OPEN, "reader", at(1), "issues/2", state="closed", number=2),
        event(EventKind.ISSUE_OPEN, "reader", at(1), "issues/3", state="closed", number=3),
        commit("a", "Ada", at(4), "Resolve #2 by rewording"),
        commit("b", "Ada", at(5), "Tidy #31 references"),
    ]

    factor, rate = FeedbackScorer(_config()).resolution_factor(activity_log(events))

    assert rate == pytest.approx(0.5)
    assert factor.value == pytest.approx(0.75)


def test_pull_request_integration_needs_commit_after_review() -> None:
    events = [
        event(EventKind.PR_OPEN, "contributor", at(1), "pulls/1", merged=True),
        event(EventKind.PR_OPEN, "contributor", at(1), "pulls/2", merged=True),
        event(EventKind.PR_OPEN, "contributor", at(1), "pulls/3", merged=False),
        event(EventKind.PR_COMMENT, "editor", at(2), "pulls/1", origin="review"),
        event(EventKind.PR_COMMENT, "editor", at(4), "pulls/2", origin="review"),
        event(EventKind.PR_COMMENT, "reader", at(2), "pulls/2", origin="issue"),
        event(EventKind.PR_COMMIT, "contributor", at(3), "pulls/1"),
        event(EventKind.PR_COMMIT, "contributor", at(3), "pulls/2"),
    ]

    factor, rate = FeedbackScorer(_config()).integration_factor(activity_log(events))

    assert rate == pytest.approx(0.5)
    assert factor.value == pytest.approx(0.75)


def test_empty_populations_fall_back_to_neutral() -> None:
    scorer = FeedbackScorer(_config())
    empty = activity_log()

    for factor, _ in (
        scorer.open_issue_factor(empty),
        scorer.resolution_factor(empty),
        scorer.integration_factor(empty),
        scorer.feedback_commit_factor(empty),
    ):
        assert factor.value == pytest.approx(0.5)
        assert factor.available is False
