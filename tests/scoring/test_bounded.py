"""Tests for the bounded integrity component."""

from __future__ import annotations

from pathlib import Path

import pytest

from distillmeta.config import EngineConfig
from distillmeta.documents import DocumentParser
from distillmeta.models import RepoManifest
from distillmeta.scoring import BoundedScorer, ScoringInputs
from distillmeta.scoring.bounded import scope_terms
from tests._fixtures.activity import activity_log

_PARSER = DocumentParser(Path("/repo"))


def _config() -> EngineConfig:
    return EngineConfig(root=Path("/repo"))


def test_declared_scope_coverage() -> None:
    document = _PARSER.parse(
        "content/index.md",
        "---\ntitle: Notes\nscope: [Memory, recall]\n---\nMemory is the topic here.\n",
    )

    factor, coverage = BoundedScorer(_config()).scope_factor([document])

    assert scope_terms([document]) == ["memory", "recall"]
    assert coverage == pytest.approx(0.5)
    assert factor.value == pytest.approx(0.5)


def test_scope_terms_derived_from_main_document() -> None:
    document = _PARSER.parse(
        "content/index.md",
        "---\ntitle: Sleep Research\n---\nSleep consolidates memory. This matters with learning.\n",
    )

    assert scope_terms([document]) == ["sleep", "research", "consolidates", "memory", "matters", "learning"]


def test_topic_drift_penalizes_off_topic_sections() -> None:
    document = _PARSER.parse(
        "content/index.md",
        "---\ntitle: Memory Recall\n---\n"
        "# Memory recall\nMemory recall memory recall.\n\n"
        "# Cooking pasta\nBoiling water pasta sauce.\n",
    )

    factor, drift = BoundedScorer(_config()).drift_factor([document])

    assert drift == pytest.approx(0.5)
    assert factor.value == pytest.approx(0.65)


def test_component_blends_placeholders() -> None:
    document = _PARSER.parse(
        "content/index.md",
        "---\ntitle: Memory Recall\nscope: memory\n---\n# Memory recall\nMemory recall memory.\n",
    )

    result = BoundedScorer(_config()).score(
        ScoringInputs(documents=[document], activity=activity_log(), manifest=RepoManifest(root="/repo", files=[]))
    )

    assert result.factor("terms").value == pytest.approx(0.85)
    assert result.factor("method").value == pytest.approx(0.9)
    assert result.factor("terms").note == "placeholder"
    # 0.3 * 1.0 + 0.3 * 1.0 + 0.2 * 0.85 + 0.2 * 0.9
    assert result.score == pytest.approx(0.95)
    assert "Term consistency: 0.85 (placeholder)" in result.details


def test_no_scope_terms_is_neutral() -> None:
    document = _PARSER.parse("content/a.md", "")

    factor, _ = BoundedScorer(_config()).scope_factor([document])

    assert factor.value == pytest.approx(0.5)
    assert factor.available is False
