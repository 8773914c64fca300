"""Normalizes revision history and platform activity into an ActivityLog."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from ..config import EngineConfig
from ..logging import get_logger
from ..models import ActivityLog, Event, EventKind, ForkRecord, SourceStatus, format_timestamp
from .git_log import CommitRecord, GitLogError, GitLogReader
from .platform import PlatformClient, PlatformError
from .schemas import Comment, Issue, PullCommit, PullRequest, Review, login_of

REVISION_HISTORY = "revision_history"
PLATFORM_SOURCES: Sequence[str] = (
    "issues",
    "issue_comments",
    "pulls",
    "reviews",
    "review_comments",
    "pull_commits",
    "forks",
)

ParentT = TypeVar("ParentT")
ItemT = TypeVar("ItemT")


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def commit_event(commit: CommitRecord) -> Event:
    return Event(
        id=f"commit:{commit.hash}",
        kind=EventKind.COMMIT,
        actor=commit.author,
        timestamp=commit.timestamp,
        target_ref=commit.hash,
        payload={
            "message": commit.message,
            "email": commit.email,
            "files": [
                {"path": delta.path, "additions": delta.additions, "deletions": delta.deletions}
                for delta in commit.files
            ],
        },
    )


def issue_event(issue: Issue) -> Event:
    return Event(
        id=f"issue:{issue.number}",
        kind=EventKind.ISSUE_OPEN,
        actor=login_of(issue.user),
        timestamp=_aware(issue.created_at),
        target_ref=f"issues/{issue.number}",
        payload={
            "number": issue.number,
            "title": issue.title,
            "body": issue.body or "",
            "state": issue.state,
            "labels": [label.name for label in issue.labels],
            "url": issue.html_url,
            "closedAt": format_timestamp(issue.closed_at) if issue.closed_at else None,
        },
    )


def issue_comment_event(number: int, comment: Comment) -> Event:
    return Event(
        id=f"issue_comment:{comment.id}",
        kind=EventKind.ISSUE_COMMENT,
        actor=login_of(comment.user),
        timestamp=_aware(comment.created_at),
        target_ref=f"issues/{number}",
        payload={"commentId": comment.id, "body": comment.body or "", "url": comment.html_url},
    )


def pull_event(pull: PullRequest) -> Event:
    return Event(
        id=f"pr:{pull.number}",
        kind=EventKind.PR_OPEN,
        actor=login_of(pull.user),
        timestamp=_aware(pull.created_at),
        target_ref=f"pulls/{pull.number}",
        payload={
            "number": pull.number,
            "title": pull.title,
            "body": pull.body or "",
            "state": pull.state,
            "merged": pull.merged,
            "mergedAt": format_timestamp(pull.merged_at) if pull.merged_at else None,
            "url": pull.html_url,
        },
    )


def review_event(number: int, review: Review) -> Optional[Event]:
    if review.submitted_at is None:
        return None
    return Event(
        id=f"pr_review:{review.id}",
        kind=EventKind.PR_REVIEW,
        actor=login_of(review.user),
        timestamp=_aware(review.submitted_at),
        target_ref=f"pulls/{number}",
        payload={
            "reviewId": review.id,
            "state": review.state,
            "body": review.body or "",
            "url": review.html_url,
        },
    )


def pull_comment_event(number: int, comment: Comment, *, origin: str) -> Event:
    return Event(
        id=f"pr_comment:{comment.id}",
        kind=EventKind.PR_COMMENT,
        actor=login_of(comment.user),
        timestamp=_aware(comment.created_at),
        target_ref=f"pulls/{number}",
        payload={
            "commentId": comment.id,
            "body": comment.body or "",
            "url": comment.html_url,
            "origin": origin,
        },
    )


def pull_commit_event(number: int, commit: PullCommit) -> Event:
    person = commit.commit.committer or commit.commit.author
    actor = commit.author.login if commit.author else (person.name if person and person.name else "unknown")
    timestamp = _aware(person.date) if person else datetime.fromtimestamp(0, UTC)
    return Event(
        id=f"pr_commit:{number}:{commit.sha}",
        kind=EventKind.PR_COMMIT,
        actor=actor,
        timestamp=timestamp,
        target_ref=f"pulls/{number}",
        payload={"sha": commit.sha, "message": commit.commit.message},
    )


class ActivityIngestor:
    """Collects every activity source and records which ones were reachable."""

    def __init__(
        self,
        config: EngineConfig,
        *,
        git_reader: GitLogReader | None = None,
        client: PlatformClient | None = None,
    ) -> None:
        self.config = config
        self.git_reader = git_reader or GitLogReader()
        self.client = client if client is not None else self._build_client()
        self.logger = get_logger("ingest")

    def collect(self) -> ActivityLog:
        log = ActivityLog(revision=self._revision())
        self._collect_commits(log)

        reason = self._platform_unavailable_reason()
        if reason is not None:
            self.logger.warning("Platform activity skipped: %s", reason)
            for name in PLATFORM_SOURCES:
                log.sources[name] = SourceStatus(name=name, available=False, reason=reason)
        else:
            self._collect_platform(log)

        log.events.sort(key=lambda event: (event.timestamp, event.id))
        return log

    # ------------------------------------------------------------------
    # Internal helpers

    def _build_client(self) -> PlatformClient | None:
        platform = self.config.platform
        if not platform.enabled or not platform.repository or "/" not in platform.repository:
            return None
        return PlatformClient(
            platform.repository,
            token=platform.token,
            api_url=platform.api_url,
            per_page=platform.per_page,
            timeout=platform.timeout,
            retries=platform.retries,
        )

    def _platform_unavailable_reason(self) -> Optional[str]:
        if not self.config.platform.enabled:
            return "platform access disabled"
        if self.client is None:
            return "repository not configured"
        return None

    def _revision(self) -> str:
        if self.config.revision:
            return self.config.revision
        return self.git_reader.head_revision(self.config.root) or "local"

    def _collect_commits(self, log: ActivityLog) -> None:
        try:
            commits = self.git_reader.read(self.config.root)
        except GitLogError as exc:
            self.logger.warning("Revision history unavailable: %s", exc)
            log.sources[REVISION_HISTORY] = SourceStatus(
                name=REVISION_HISTORY, available=False, reason=str(exc)
            )
            return
        log.events.extend(commit_event(commit) for commit in commits)
        log.sources[REVISION_HISTORY] = SourceStatus(
            name=REVISION_HISTORY, available=True, count=len(commits)
        )
        self.logger.info("Read %d commit(s) from revision history", len(commits))

    def _collect_platform(self, log: ActivityLog) -> None:
        client = self.client
        assert client is not None

        all_issues = self._fetch(log, "issues", client.list_issues)
        issues = [issue for issue in all_issues if not issue.is_pull_request] if all_issues is not None else None
        if issues is not None:
            log.sources["issues"].count = len(issues)
            log.events.extend(issue_event(issue) for issue in issues)

        issue_comments = self._fetch_each(
            log, "issue_comments", issues, "issues", lambda issue: client.list_issue_comments(issue.number)
        )
        if issue_comments is not None:
            for issue, comments in issue_comments:
                log.events.extend(issue_comment_event(issue.number, comment) for comment in comments)

        pulls = self._fetch(log, "pulls", client.list_pulls)
        if pulls is not None:
            log.events.extend(pull_event(pull) for pull in pulls)

        reviews = self._fetch_each(
            log, "reviews", pulls, "pulls", lambda pull: client.list_reviews(pull.number)
        )
        if reviews is not None:
            for pull, items in reviews:
                for review in items:
                    event = review_event(pull.number, review)
                    if event is not None:
                        log.events.append(event)

        review_comments = self._fetch_each(
            log,
            "review_comments",
            pulls,
            "pulls",
            lambda pull: [("review", c) for c in client.list_review_comments(pull.number)]
            + [("issue", c) for c in client.list_issue_comments(pull.number)],
        )
        if review_comments is not None:
            for pull, items in review_comments:
                log.events.extend(
                    pull_comment_event(pull.number, comment, origin=origin) for origin, comment in items
                )

        pull_commits = self._fetch_each(
            log, "pull_commits", pulls, "pulls", lambda pull: client.list_pull_commits(pull.number)
        )
        if pull_commits is not None:
            for pull, commits in pull_commits:
                log.events.extend(pull_commit_event(pull.number, commit) for commit in commits)

        forks = self._fetch(log, "forks", client.list_forks)
        if forks is not None:
            log.forks = [
                ForkRecord(full_name=fork.full_name, owner=fork.owner.login, created_at=_aware(fork.created_at))
                for fork in forks
            ]

    def _fetch(self, log: ActivityLog, name: str, fetch: Callable[[], List[ItemT]]) -> Optional[List[ItemT]]:
        try:
            items = fetch()
        except PlatformError as exc:
            self._mark_unavailable(log, name, str(exc))
            return None
        log.sources[name] = SourceStatus(name=name, available=True, count=len(items))
        return items

    def _fetch_each(
        self,
        log: ActivityLog,
        name: str,
        parents: Optional[List[ParentT]],
        parent_source: str,
        fetch: Callable[[ParentT], List[ItemT]],
    ) -> Optional[List[Tuple[ParentT, List[ItemT]]]]:
        if parents is None:
            log.sources[name] = SourceStatus(
                name=name, available=False, reason=f"{parent_source} unavailable"
            )
            return None
        results: List[Tuple[ParentT, List[ItemT]]] = []
        try:
            for parent in parents:
                results.append((parent, fetch(parent)))
        except PlatformError as exc:
            self._mark_unavailable(log, name, str(exc))
            return None
        log.sources[name] = SourceStatus(
            name=name, available=True, count=sum(len(items) for _, items in results)
        )
        return results

    def _mark_unavailable(self, log: ActivityLog, name: str, reason: str) -> None:
        self.logger.warning("Source %s unavailable: %s", name, reason)
        log.sources[name] = SourceStatus(name=name, available=False, reason=reason)


__all__ = ["ActivityIngestor", "PLATFORM_SOURCES", "REVISION_HISTORY", "commit_event"]
