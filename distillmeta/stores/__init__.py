"""Persistence helpers for engine artifacts."""

from .artifacts import ArtifactStore, atomic_write_text, render_json

__all__ = ["ArtifactStore", "atomic_write_text", "render_json"]
