"""Elastic tolerance: room for contradiction, plurality and uncertainty."""

from __future__ import annotations

from ..config import EngineConfig
from ..models import ComponentScore
from .base import ScoringInputs, component, placeholder

_LABELS = (
    ("contradiction", "Contradiction integration"),
    ("perspective", "Multiple perspectives"),
    ("uncertainty", "Uncertainty representation"),
    ("limitation", "Limitation acknowledgment"),
)


class ElasticScorer:
    name = "elastic"

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def score(self, inputs: ScoringInputs) -> ComponentScore:
        factors = [placeholder(self.config, name) for name, _ in _LABELS]
        details = [
            f"{label}: {factor.value:.2f} (placeholder)" for (_, label), factor in zip(_LABELS, factors)
        ]
        return component(self.name, factors, self.config.scoring.elastic_weights, details)


__all__ = ["ElasticScorer"]
