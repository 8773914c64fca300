"""Combines the four coherence components into a CoherenceReport."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from ..config import EngineConfig
from ..constants import FACTOR_REMEDIATIONS
from ..logging import get_logger
from ..models import (
    COMPONENTS,
    ActivityLog,
    CoherenceReport,
    ComponentScore,
    Document,
    RepoManifest,
    format_timestamp,
    utc_now,
)
from .base import ComponentScorer, ScoringInputs, weighted_geometric_mean
from .bounded import BoundedScorer
from .elastic import ElasticScorer
from .feedback import FeedbackScorer
from .signal import SignalScorer


class CoherenceScorer:
    """Scores documents and activity; never raises for a missing signal."""

    def __init__(
        self,
        config: EngineConfig,
        *,
        clock: Callable[[], datetime] = utc_now,
        scorers: Sequence[ComponentScorer] | None = None,
    ) -> None:
        self.config = config
        self.clock = clock
        self.scorers: Sequence[ComponentScorer] = scorers or (
            SignalScorer(config),
            FeedbackScorer(config),
            BoundedScorer(config),
            ElasticScorer(config),
        )
        self.logger = get_logger("scoring")

    def score(
        self,
        documents: Sequence[Document],
        activity: ActivityLog,
        manifest: RepoManifest,
    ) -> CoherenceReport:
        inputs = ScoringInputs(documents=documents, activity=activity, manifest=manifest)
        results: Dict[str, ComponentScore] = {}
        for scorer in self.scorers:
            result = scorer.score(inputs)
            results[result.name] = result
            self.logger.debug("%s component scored %.3f", result.name, result.score)
            for factor in result.factors:
                if not factor.available:
                    self.logger.info("%s.%s defaulted: %s", result.name, factor.name, factor.note)

        components = {name: results[name].score for name in COMPONENTS}
        overall = weighted_geometric_mean(components, self.config.weights.as_dict())
        return CoherenceReport(
            overall_score=overall,
            components=components,
            details={name: list(results[name].details) for name in COMPONENTS},
            recommendations=self.recommendations(results),
            metadata={
                "timestamp": format_timestamp(self.clock()),
                "repository": self.config.repository_label,
                "revision": activity.revision,
                "recursiveDepth": self.recursive_depth(documents),
            },
            factors={name: list(results[name].factors) for name in COMPONENTS},
        )

    def recommendations(self, results: Dict[str, ComponentScore]) -> List[str]:
        """One remediation per weak factor of each component below its threshold."""
        thresholds = self.config.thresholds
        lines: List[str] = []
        for name in COMPONENTS:
            result = results[name]
            if result.score >= thresholds.for_component(name):
                continue
            remediations = FACTOR_REMEDIATIONS.get(name, {})
            for factor in result.factors:
                if factor.value < thresholds.factor and factor.name in remediations:
                    lines.append(remediations[factor.name])
        return lines

    def recursive_depth(self, documents: Sequence[Document]) -> float | int:
        index_path = f"{self.config.paths.content.strip('/')}/index.md"
        index: Optional[Document] = next((doc for doc in documents if doc.path == index_path), None)
        if index is None:
            return 1
        recursion = index.front_matter.get("recursion")
        if isinstance(recursion, dict):
            depth = recursion.get("depth")
            if isinstance(depth, (int, float)) and not isinstance(depth, bool):
                return depth
        return 1


__all__ = ["CoherenceScorer"]
