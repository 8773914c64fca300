"""Coherence scoring, attribution and residue tracking for collaborative document repositories."""

__version__ = "0.1.0"
