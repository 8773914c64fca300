"""Builders for normalized activity used across scoring, attribution and residue tests."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, Sequence

from distillmeta.ingest import PLATFORM_SOURCES, REVISION_HISTORY
from distillmeta.models import ActivityLog, Event, EventKind, SourceStatus

ALL_SOURCES: Sequence[str] = (REVISION_HISTORY, *PLATFORM_SOURCES)


def event(kind: EventKind, actor: str, when: datetime, ref: str, event_id: str | None = None, **payload: Any) -> Event:
    return Event(
        id=event_id or f"{kind.value}:{ref}:{actor}:{when.isoformat()}",
        kind=kind,
        actor=actor,
        timestamp=when,
        target_ref=ref,
        payload=payload,
    )


def commit(sha: str, author: str, when: datetime, message: str = "Update", files: Iterable[tuple] = ()) -> Event:
    return event(
        EventKind.COMMIT,
        author,
        when,
        sha,
        event_id=f"commit:{sha}",
        message=message,
        email=f"{author.lower()}@example.org",
        files=[{"path": path, "additions": adds, "deletions": dels} for path, adds, dels in files],
    )


def activity_log(
    events: Iterable[Event] = (),
    *,
    unavailable: Iterable[str] = (),
    reason: str = "platform access disabled",
    forks: Iterable[Any] = (),
) -> ActivityLog:
    missing = set(unavailable)
    log = ActivityLog(events=sorted(events, key=lambda item: (item.timestamp, item.id)), forks=list(forks))
    for name in ALL_SOURCES:
        if name in missing:
            log.sources[name] = SourceStatus(name=name, available=False, reason=reason)
        else:
            log.sources[name] = SourceStatus(name=name, available=True)
    return log


__all__ = ["ALL_SOURCES", "activity_log", "commit", "event"]
