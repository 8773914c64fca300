"""Coherence scoring components."""

from .base import ScoringInputs, blend, weighted_geometric_mean
from .bounded import BoundedScorer
from .elastic import ElasticScorer
from .feedback import FeedbackScorer
from .scorer import CoherenceScorer
from .signal import SignalScorer

__all__ = [
    "BoundedScorer",
    "CoherenceScorer",
    "ElasticScorer",
    "FeedbackScorer",
    "ScoringInputs",
    "SignalScorer",
    "blend",
    "weighted_geometric_mean",
]
