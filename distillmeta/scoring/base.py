"""Shared scoring primitives: inputs, factor blending and the geometric mean."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Mapping, Protocol, Sequence

from ..config import EngineConfig
from ..models import ActivityLog, ComponentScore, Document, FactorScore, RepoManifest


@dataclass
class ScoringInputs:
    """Everything a component scorer may look at."""

    documents: Sequence[Document]
    activity: ActivityLog
    manifest: RepoManifest


class ComponentScorer(Protocol):
    name: str

    def score(self, inputs: ScoringInputs) -> ComponentScore:
        ...


def blend(factors: Sequence[FactorScore], weights: Mapping[str, float]) -> float:
    """Weighted average of factor values; weights are normalized by their sum."""
    total = sum(weights.get(factor.name, 0.0) for factor in factors)
    if total <= 0:
        return 0.0
    value = sum(factor.value * weights.get(factor.name, 0.0) for factor in factors) / total
    return max(0.0, min(1.0, value))


def weighted_geometric_mean(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """``(prod s_i ** w_i) ** (1 / sum w_i)`` over components with positive weight.

    A component at zero with positive weight collapses the result to zero.
    """
    active = [(scores[name], weight) for name, weight in weights.items() if weight > 0]
    total = sum(weight for _, weight in active)
    if total <= 0:
        return 0.0
    if any(score <= 0 for score, _ in active):
        return 0.0
    log_sum = sum(weight * math.log(score) for score, weight in active)
    return max(0.0, min(1.0, math.exp(log_sum / total)))


def placeholder(config: EngineConfig, name: str) -> FactorScore:
    """Fixed-value factor pending a real text analysis."""
    return FactorScore.computed(name, config.scoring.placeholders[name], note="placeholder")


def describe(label: str, factor: FactorScore, measured: str) -> str:
    """Detail line for a factor; defaulted factors say why."""
    if factor.available:
        return f"{label}: {measured}"
    return f"{label}: defaulted to {factor.value:.2f} ({factor.note})"


def neutral(config: EngineConfig, name: str, reason: str) -> FactorScore:
    return FactorScore.defaulted(name, config.scoring.neutral_default, reason)


def component(
    name: str, factors: List[FactorScore], weights: Mapping[str, float], details: List[str]
) -> ComponentScore:
    return ComponentScore(name=name, score=blend(factors, weights), factors=factors, details=details)


__all__ = [
    "ComponentScorer",
    "ScoringInputs",
    "blend",
    "component",
    "describe",
    "neutral",
    "placeholder",
    "weighted_geometric_mean",
]
