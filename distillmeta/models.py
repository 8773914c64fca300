"""Core data models shared across distillmeta components."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, TypeVar

COMPONENTS: Sequence[str] = ("signal", "feedback", "bounded", "elastic")

T = TypeVar("T")


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as an ISO-8601 string with a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse ISO-8601 timestamps as produced by git, the platform API and this package."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class EventKind(str, Enum):
    """Closed set of normalized activity kinds."""

    COMMIT = "commit"
    ISSUE_OPEN = "issue_open"
    ISSUE_COMMENT = "issue_comment"
    PR_OPEN = "pr_open"
    PR_REVIEW = "pr_review"
    PR_COMMENT = "pr_comment"
    PR_COMMIT = "pr_commit"


@dataclass(frozen=True)
class Event:
    """One normalized activity record emitted by the ingestor."""

    id: str
    kind: EventKind
    actor: str
    timestamp: datetime
    target_ref: str
    payload: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Fetched(Generic[T]):
    """Outcome of reading one external source: real data or a documented default."""

    data: T
    available: bool = True
    reason: Optional[str] = None

    @classmethod
    def ok(cls, data: T) -> "Fetched[T]":
        return cls(data=data)

    @classmethod
    def unavailable(cls, default: T, reason: str) -> "Fetched[T]":
        return cls(data=default, available=False, reason=reason)


@dataclass
class SourceStatus:
    """Availability of an activity source for the current run."""

    name: str
    available: bool
    reason: Optional[str] = None
    count: int = 0


@dataclass(frozen=True)
class ForkRecord:
    """Minimal view of a repository fork."""

    full_name: str
    owner: str
    created_at: datetime


@dataclass
class ActivityLog:
    """Everything the ingestor learned about repository activity in one run."""

    events: List[Event] = field(default_factory=list)
    sources: Dict[str, SourceStatus] = field(default_factory=dict)
    forks: List[ForkRecord] = field(default_factory=list)
    revision: str = "local"

    def of_kind(self, *kinds: EventKind) -> List[Event]:
        wanted = set(kinds)
        return [event for event in self.events if event.kind in wanted]

    def is_available(self, *sources: str) -> bool:
        for name in sources:
            status = self.sources.get(name)
            if status is None or not status.available:
                return False
        return True

    def unavailable_reason(self, *sources: str) -> str:
        reasons = []
        for name in sources:
            status = self.sources.get(name)
            if status is None:
                reasons.append(f"{name} not fetched")
            elif not status.available:
                reasons.append(f"{name}: {status.reason or 'unavailable'}")
        return "; ".join(reasons) or "unavailable"


@dataclass
class FileMeta:
    """Metadata for an individual repository file."""

    path: str
    size: int
    role: str


@dataclass
class RepoManifest:
    """Normalized view of the repository tree."""

    root: str
    files: List[FileMeta]

    def paths_under(self, prefix: str, suffixes: Iterable[str] | None = None) -> List[str]:
        """Return file paths below ``prefix``, optionally filtered by suffix."""
        normalized = prefix.strip("/") + "/" if prefix.strip("/") else ""
        allowed = {suffix.lower() for suffix in suffixes} if suffixes is not None else None
        matches: List[str] = []
        for meta in self.files:
            path = meta.path
            if normalized and not path.startswith(normalized):
                continue
            if allowed is not None:
                dot = path.rfind(".")
                suffix = path[dot:].lower() if dot != -1 else ""
                if suffix not in allowed:
                    continue
            matches.append(path)
        return matches

    def has_file(self, path: str) -> bool:
        return any(meta.path == path for meta in self.files)


@dataclass
class Section:
    """A heading-delimited slice of a document."""

    title: str
    body: str
    extracted_topics: List[str] = field(default_factory=list)


@dataclass
class Document:
    """A parsed markdown document with its front matter."""

    path: str
    front_matter: Dict[str, Any]
    body: str
    sections: List[Section] = field(default_factory=list)

    @property
    def title(self) -> Optional[str]:
        value = self.front_matter.get("title")
        return str(value) if value is not None else None


@dataclass
class FactorScore:
    """One sub-factor of a coherence component."""

    name: str
    value: float
    available: bool = True
    note: Optional[str] = None

    @classmethod
    def computed(cls, name: str, value: float, note: str | None = None) -> "FactorScore":
        return cls(name=name, value=_clamp(value), available=True, note=note)

    @classmethod
    def defaulted(cls, name: str, default: float, reason: str) -> "FactorScore":
        return cls(name=name, value=_clamp(default), available=False, note=reason)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "value": self.value,
            "available": self.available,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "FactorScore":
        if not isinstance(payload, Mapping):
            raise ValueError("factor entry must be a mapping")
        name = payload.get("name")
        value = payload.get("value")
        available = payload.get("available")
        note = payload.get("note")
        if not isinstance(name, str) or not _is_number(value) or not isinstance(available, bool):
            raise ValueError("factor entry is missing name, value or available")
        if note is not None and not isinstance(note, str):
            raise ValueError("factor note must be a string")
        return cls(name=name, value=float(value), available=available, note=note)


@dataclass
class ComponentScore:
    """A coherence component with the factors it was blended from."""

    name: str
    score: float
    factors: List[FactorScore]
    details: List[str]

    def factor(self, name: str) -> FactorScore:
        for factor in self.factors:
            if factor.name == name:
                return factor
        raise KeyError(name)


@dataclass
class CoherenceReport:
    """Snapshot produced by one scoring run."""

    overall_score: float
    components: Dict[str, float]
    details: Dict[str, List[str]]
    recommendations: List[str]
    metadata: Dict[str, Any]
    factors: Dict[str, List[FactorScore]] = field(default_factory=dict)

    @property
    def timestamp(self) -> str:
        return str(self.metadata.get("timestamp", ""))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallScore": self.overall_score,
            "components": {name: self.components[name] for name in self.components},
            "details": {name: list(lines) for name, lines in self.details.items()},
            "factors": {
                name: [factor.to_dict() for factor in factors]
                for name, factors in self.factors.items()
            },
            "recommendations": list(self.recommendations),
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "CoherenceReport":
        if not isinstance(payload, Mapping):
            raise ValueError("coherence report must be a mapping")
        overall = payload.get("overallScore")
        if not _is_number(overall):
            raise ValueError("coherence report is missing overallScore")
        raw_components = payload.get("components")
        if not isinstance(raw_components, Mapping):
            raise ValueError("coherence report is missing components")
        components: Dict[str, float] = {}
        for name in COMPONENTS:
            value = raw_components.get(name)
            if not _is_number(value):
                raise ValueError(f"coherence report component '{name}' is not numeric")
            components[name] = float(value)
        raw_details = payload.get("details", {})
        if not isinstance(raw_details, Mapping):
            raise ValueError("coherence report details must be a mapping")
        details = {
            str(name): [str(line) for line in lines]
            for name, lines in raw_details.items()
            if isinstance(lines, list)
        }
        raw_factors = payload.get("factors", {})
        if not isinstance(raw_factors, Mapping):
            raise ValueError("coherence report factors must be a mapping")
        factors = {
            str(name): [FactorScore.from_dict(entry) for entry in entries]
            for name, entries in raw_factors.items()
            if isinstance(entries, list)
        }
        recommendations = payload.get("recommendations", [])
        if not isinstance(recommendations, list):
            raise ValueError("coherence report recommendations must be a list")
        metadata = payload.get("metadata", {})
        if not isinstance(metadata, Mapping):
            raise ValueError("coherence report metadata must be a mapping")
        return cls(
            overall_score=float(overall),
            components=components,
            details=details,
            recommendations=[str(item) for item in recommendations],
            metadata=dict(metadata),
            factors=factors,
        )


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


__all__ = [
    "COMPONENTS",
    "ActivityLog",
    "CoherenceReport",
    "ComponentScore",
    "Document",
    "Event",
    "EventKind",
    "FactorScore",
    "Fetched",
    "FileMeta",
    "ForkRecord",
    "RepoManifest",
    "Section",
    "SourceStatus",
    "format_timestamp",
    "parse_timestamp",
    "utc_now",
]
