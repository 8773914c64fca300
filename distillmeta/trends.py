"""Coherence history and period trend reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional

from .attribution import AttributionGraph
from .config import EngineConfig
from .constants import COMPONENT_RECOMMENDATIONS
from .logging import get_logger
from .models import COMPONENTS, ActivityLog, CoherenceReport, EventKind, format_timestamp, parse_timestamp, utc_now
from .residue.catalog import ResidueCatalog

HISTORY_VERSION = "1.0.0"
REPORT_VERSION = "1.0.0"

MAINTENANCE_RECOMMENDATION = "Maintain current coherence practices and continue regular improvements"


@dataclass
class HistoryEntry:
    """One coherence snapshot kept in the history."""

    timestamp: str
    overall_score: float
    components: Dict[str, float]
    details: Dict[str, List[str]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def moment(self) -> datetime:
        return parse_timestamp(self.timestamp)

    @classmethod
    def from_report(cls, report: CoherenceReport) -> "HistoryEntry":
        return cls(
            timestamp=report.timestamp,
            overall_score=report.overall_score,
            components=dict(report.components),
            details={name: list(lines) for name, lines in report.details.items()},
            metadata=dict(report.metadata),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "overallScore": self.overall_score,
            "components": dict(self.components),
            "details": {name: list(lines) for name, lines in self.details.items()},
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "HistoryEntry":
        report = CoherenceReport.from_dict(payload)
        timestamp = payload.get("timestamp") or report.timestamp
        if not isinstance(timestamp, str):
            raise ValueError("history entry is missing a timestamp")
        parse_timestamp(timestamp)
        return cls(
            timestamp=timestamp,
            overall_score=report.overall_score,
            components=report.components,
            details=report.details,
            metadata=report.metadata,
        )


@dataclass
class CoherenceHistory:
    """Append-only, timestamp-ordered list of coherence snapshots."""

    entries: List[HistoryEntry] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def baseline(cls, repository: str, now: datetime) -> "CoherenceHistory":
        return cls(
            metadata={
                "repository": repository,
                "created": format_timestamp(now),
                "version": HISTORY_VERSION,
                "entryCount": 0,
            }
        )

    def append(self, report: CoherenceReport, now: datetime) -> HistoryEntry:
        entry = HistoryEntry.from_report(report)
        self.entries.append(entry)
        self.entries.sort(key=lambda item: item.moment)
        self.metadata["lastUpdated"] = format_timestamp(now)
        self.metadata["entryCount"] = len(self.entries)
        return entry

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "CoherenceHistory":
        if not isinstance(payload, Mapping):
            raise ValueError("coherence history must be a mapping")
        raw_entries = payload.get("entries")
        metadata = payload.get("metadata", {})
        if not isinstance(raw_entries, list):
            raise ValueError("coherence history requires an entry list")
        if not isinstance(metadata, Mapping):
            raise ValueError("coherence history metadata must be a mapping")
        entries = [HistoryEntry.from_dict(item) for item in raw_entries]
        entries.sort(key=lambda item: item.moment)
        return cls(entries=entries, metadata=dict(metadata))


def component_recommendations(
    component: str, value: float, *, attention: float = 0.7, watch: float = 0.85
) -> List[str]:
    """All defaults below ``attention``, the first two below ``watch``, else the first."""
    defaults = COMPONENT_RECOMMENDATIONS.get(component, [])
    if value < attention:
        return list(defaults)
    if value < watch:
        return list(defaults[:2])
    return list(defaults[:1])


class TrendReporter:
    """Builds the period report from history, activity, attribution and residue."""

    def __init__(self, config: EngineConfig, *, clock: Callable[[], datetime] = utc_now) -> None:
        self.config = config
        self.clock = clock
        self.logger = get_logger("trends")

    def trend(self, current: float, previous: Optional[float]) -> Optional[str]:
        if previous is None:
            return None
        change = current - previous
        if abs(change) < self.config.scoring.trend_epsilon:
            return "stable"
        return "up" if change > 0 else "down"

    def build(
        self,
        history: CoherenceHistory,
        activity: ActivityLog,
        graph: AttributionGraph,
        catalog: ResidueCatalog,
    ) -> Dict[str, Any]:
        if not history.entries:
            raise ValueError("No coherence data available for reporting")
        now = self.clock()
        days = self.config.report_period_days
        thresholds = self.config.thresholds
        start = now - timedelta(days=days)

        current = history.entries[-1]
        earlier = [entry for entry in history.entries if entry.moment < start]
        previous = earlier[-1] if earlier else None
        in_period = sum(1 for entry in history.entries if entry.moment >= start)

        components: Dict[str, Dict[str, Any]] = {}
        for name in COMPONENTS:
            value = current.components[name]
            before = previous.components.get(name) if previous else None
            components[name] = {
                "current": value,
                "previous": before,
                "change": value - before if before is not None else None,
                "trend": self.trend(value, before),
                "details": list(current.details.get(name, [])),
                "recommendations": component_recommendations(
                    name,
                    value,
                    attention=thresholds.for_component(name),
                    watch=thresholds.publication,
                ),
            }

        previous_overall = previous.overall_score if previous else None
        activity_summary = self.activity_summary(activity, start)
        attribution_summary = self.attribution_summary(graph, start)
        residue_summary = self.residue_summary(catalog, start)

        report = {
            "period": {"start": format_timestamp(start), "end": format_timestamp(now), "days": days},
            "overall": {
                "current": current.overall_score,
                "previous": previous_overall,
                "change": current.overall_score - previous_overall if previous_overall is not None else None,
                "trend": self.trend(current.overall_score, previous_overall),
            },
            "components": components,
            "activity": activity_summary,
            "attribution": attribution_summary,
            "residue": residue_summary,
            "recommendations": self.recommendations(components, activity_summary, residue_summary),
            "metadata": {
                "repository": self.config.repository_label,
                "generated": format_timestamp(now),
                "coherenceEntries": in_period,
                "version": REPORT_VERSION,
            },
        }
        self.logger.info(
            "Period report: overall %.2f (%s)", current.overall_score, report["overall"]["trend"] or "no baseline"
        )
        return report

    def activity_summary(self, activity: ActivityLog, start: datetime) -> Dict[str, Any]:
        commits = [event for event in activity.of_kind(EventKind.COMMIT) if event.timestamp >= start]
        issues = activity.of_kind(EventKind.ISSUE_OPEN)
        open_issues = sum(1 for issue in issues if issue.payload.get("state") == "open")
        closed_issues = 0
        for issue in issues:
            closed_at = issue.payload.get("closedAt")
            if issue.payload.get("state") == "closed" and closed_at and parse_timestamp(closed_at) >= start:
                closed_issues += 1
        return {
            "commitCount": len(commits),
            "commits": [event.target_ref[:7] for event in commits],
            "openIssues": open_issues,
            "closedIssues": closed_issues,
            "forks": sum(1 for fork in activity.forks if fork.created_at >= start),
            "platformAvailable": activity.is_available("issues"),
        }

    @staticmethod
    def attribution_summary(graph: AttributionGraph, start: datetime) -> Dict[str, Any]:
        contributors = graph.contributors()
        new = 0
        for node in contributors:
            first = node.attrs.get("firstContribution")
            if isinstance(first, str) and _at_or_after(first, start):
                new += 1
        metrics = graph.metadata.get("metrics", {})
        density = metrics.get("density", 0.0) if isinstance(metrics, Mapping) else 0.0
        return {"activeContributors": len(contributors), "newContributors": new, "density": density}

    @staticmethod
    def residue_summary(catalog: ResidueCatalog, start: datetime) -> Dict[str, Any]:
        new = sum(1 for instance in catalog.instances if _at_or_after(instance.detected, start))
        resolved = sum(
            1
            for instance in catalog.instances
            if instance.status == "resolved"
            and (instance.resolved_at is None or _at_or_after(instance.resolved_at, start))
        )
        active = sum(1 for instance in catalog.instances if instance.status == "active")
        metrics = catalog.meta.get("metrics", {})
        dominant = metrics.get("dominantClassification") if isinstance(metrics, Mapping) else None
        return {"new": new, "resolved": resolved, "active": active, "dominantType": dominant}

    def recommendations(
        self,
        components: Mapping[str, Mapping[str, Any]],
        activity: Mapping[str, Any],
        residue: Mapping[str, Any],
    ) -> List[str]:
        lines: List[str] = []
        for name, metrics in components.items():
            if metrics["current"] < self.config.thresholds.for_component(name) and metrics["recommendations"]:
                lines.append(
                    f"Improve {name} ({metrics['current']:.2f}) by implementing the following: "
                    f"{metrics['recommendations'][0]}"
                )
        if activity["commitCount"] == 0:
            lines.append("Increase development activity with regular commits to improve content and address issues")
        if activity["closedIssues"] == 0 and activity["openIssues"] > 0:
            lines.append("Address open issues to improve feedback responsiveness")
        if residue["active"] > self.config.residue.backlog_limit and residue["resolved"] == 0:
            lines.append("Address accumulated symbolic residue to improve conceptual clarity")
        if not lines:
            lines.append(MAINTENANCE_RECOMMENDATION)
        return lines


def _at_or_after(raw: str, start: datetime) -> bool:
    try:
        return parse_timestamp(raw) >= start
    except ValueError:
        return False


__all__ = [
    "CoherenceHistory",
    "HistoryEntry",
    "MAINTENANCE_RECOMMENDATION",
    "TrendReporter",
    "component_recommendations",
]
