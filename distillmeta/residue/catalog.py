"""Residue instances and the persisted catalog they accumulate in."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from ..constants import RESIDUE_TAXONOMY
from ..models import format_timestamp, parse_timestamp

CATALOG_VERSION = "1.0.0"

DEPTHS = ("surface", "intermediate", "deep")
VALENCES = ("negative", "neutral", "positive")
STATUSES = ("active", "pending", "resolved")


@dataclass
class ResidueInstance:
    """One flagged explanatory gap."""

    id: str
    classification: str
    description: str
    section: str
    failure_mode: str
    recursive_depth: str
    valence: str
    detected: str
    reporter: str
    source: str
    status: str
    location: Optional[Dict[str, Any]] = None
    resolved_at: Optional[str] = None
    reference: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.description, self.section)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "classification": self.classification,
            "description": self.description,
            "section": self.section,
            "failureMode": self.failure_mode,
            "recursiveDepth": self.recursive_depth,
            "valence": self.valence,
            "detected": self.detected,
            "reporter": self.reporter,
            "source": self.source,
            "status": self.status,
        }
        if self.location is not None:
            payload["location"] = dict(self.location)
        if self.resolved_at is not None:
            payload["resolvedAt"] = self.resolved_at
        if self.reference is not None:
            payload["reference"] = dict(self.reference)
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> "ResidueInstance":
        if not isinstance(payload, Mapping):
            raise ValueError("residue instance must be a mapping")
        required = ("id", "classification", "description", "section", "detected", "status")
        missing = [name for name in required if not isinstance(payload.get(name), str)]
        if missing:
            raise ValueError(f"residue instance is missing {', '.join(missing)}")
        location = payload.get("location")
        reference = payload.get("reference")
        resolved_at = payload.get("resolvedAt")
        return cls(
            id=payload["id"],
            classification=payload["classification"],
            description=payload["description"],
            section=payload["section"],
            failure_mode=str(payload.get("failureMode", "Unknown")),
            recursive_depth=str(payload.get("recursiveDepth", "surface")),
            valence=str(payload.get("valence", "neutral")),
            detected=payload["detected"],
            reporter=str(payload.get("reporter", "unknown")),
            source=str(payload.get("source", "unknown")),
            status=payload["status"],
            location=dict(location) if isinstance(location, Mapping) else None,
            resolved_at=resolved_at if isinstance(resolved_at, str) else None,
            reference=dict(reference) if isinstance(reference, Mapping) else None,
        )


@dataclass
class ResidueCatalog:
    """Merge-by-key collection of residue instances."""

    instances: List[ResidueInstance] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def baseline(cls, repository: str, now: datetime) -> "ResidueCatalog":
        return cls(
            meta={
                "repository": repository,
                "created": format_timestamp(now),
                "version": CATALOG_VERSION,
                "count": 0,
            }
        )

    def merge(self, candidates: Iterable[ResidueInstance]) -> List[ResidueInstance]:
        """Append candidates whose ``(description, section)`` is new; existing entries are untouched."""
        seen: Set[Tuple[str, str]] = {instance.key for instance in self.instances}
        added: List[ResidueInstance] = []
        for candidate in candidates:
            if candidate.key in seen:
                continue
            seen.add(candidate.key)
            self.instances.append(candidate)
            added.append(candidate)
        return added

    def recompute_metrics(self, now: datetime, *, recent_days: int = 30) -> Dict[str, Any]:
        by_classification: Dict[str, int] = {name: 0 for name in RESIDUE_TAXONOMY}
        by_status: Dict[str, int] = {name: 0 for name in STATUSES}
        by_valence: Dict[str, int] = {name: 0 for name in VALENCES}
        cutoff = now - timedelta(days=recent_days)
        recent = 0
        for instance in self.instances:
            by_classification[instance.classification] = by_classification.get(instance.classification, 0) + 1
            by_status[instance.status] = by_status.get(instance.status, 0) + 1
            by_valence[instance.valence] = by_valence.get(instance.valence, 0) + 1
            if _detected_after(instance.detected, cutoff):
                recent += 1

        metrics = {
            "byClassification": by_classification,
            "byStatus": by_status,
            "byValence": by_valence,
            "dominantClassification": dominant_classification(self.instances),
            "recent": recent,
        }
        self.meta["count"] = len(self.instances)
        self.meta["lastUpdated"] = format_timestamp(now)
        self.meta["metrics"] = metrics
        return metrics

    def to_dict(self) -> Dict[str, Any]:
        return {
            "instances": [instance.to_dict() for instance in self.instances],
            "meta": dict(self.meta),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "ResidueCatalog":
        if not isinstance(payload, Mapping):
            raise ValueError("residue catalog must be a mapping")
        raw_instances = payload.get("instances")
        meta = payload.get("meta", {})
        if not isinstance(raw_instances, list):
            raise ValueError("residue catalog requires an instance list")
        if not isinstance(meta, Mapping):
            raise ValueError("residue catalog meta must be a mapping")
        return cls(
            instances=[ResidueInstance.from_dict(item) for item in raw_instances],
            meta=dict(meta),
        )


def dominant_classification(instances: Iterable[ResidueInstance]) -> Optional[str]:
    """Most frequent class; ties go to the class declared first in the taxonomy."""
    counts: Dict[str, int] = {}
    for instance in instances:
        counts[instance.classification] = counts.get(instance.classification, 0) + 1
    if not counts:
        return None
    order = {name: index for index, name in enumerate(RESIDUE_TAXONOMY)}
    return min(counts, key=lambda name: (-counts[name], order.get(name, len(order)), name))


def _detected_after(raw: str, cutoff: datetime) -> bool:
    try:
        return parse_timestamp(raw) > cutoff
    except ValueError:
        return False


__all__ = [
    "CATALOG_VERSION",
    "DEPTHS",
    "ResidueCatalog",
    "ResidueInstance",
    "STATUSES",
    "VALENCES",
    "dominant_classification",
]
