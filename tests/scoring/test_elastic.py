"""Tests for the elastic tolerance component."""

from __future__ import annotations

from pathlib import Path

import pytest

from distillmeta.config import EngineConfig
from distillmeta.models import RepoManifest
from distillmeta.scoring import ElasticScorer, ScoringInputs
from tests._fixtures.activity import activity_log


def test_elastic_reports_placeholder_factors() -> None:
    result = ElasticScorer(EngineConfig(root=Path("/repo"))).score(
        ScoringInputs(documents=[], activity=activity_log(), manifest=RepoManifest(root="/repo", files=[]))
    )

    assert [factor.name for factor in result.factors] == ["contradiction", "perspective", "uncertainty", "limitation"]
    assert all(factor.note == "placeholder" for factor in result.factors)
    assert result.score == pytest.approx(0.7875)
    assert result.details[1] == "Multiple perspectives: 0.70 (placeholder)"
