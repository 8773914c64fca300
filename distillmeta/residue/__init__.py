"""Residue detection, classification and cataloging."""

from .catalog import ResidueCatalog, ResidueInstance, dominant_classification
from .classifier import ResidueClassifier, residue_id

__all__ = [
    "ResidueCatalog",
    "ResidueClassifier",
    "ResidueInstance",
    "dominant_classification",
    "residue_id",
]
