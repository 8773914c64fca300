"""Tests for the meta-directory artifact store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from distillmeta.stores import ArtifactStore, atomic_write_text, render_json


def _parse(payload: Any) -> dict:
    if not isinstance(payload, dict) or "items" not in payload:
        raise ValueError("missing items")
    return payload


def test_render_json_is_sorted_and_indented() -> None:
    assert render_json({"b": 1, "a": "ü"}) == '{\n  "a": "ü",\n  "b": 1\n}\n'


def test_atomic_write_leaves_no_temp_file(tmp_path: Path) -> None:
    target = tmp_path / "meta" / "coherence.json"

    atomic_write_text(target, "{}\n")
    atomic_write_text(target, '{"v": 2}\n')

    assert target.read_text(encoding="utf-8") == '{"v": 2}\n'
    assert [path.name for path in target.parent.iterdir()] == ["coherence.json"]


def test_failed_atomic_write_removes_temp_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    target = tmp_path / "meta" / "coherence.json"
    atomic_write_text(target, "{}\n")

    def refuse(src: Any, dst: Any) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("distillmeta.stores.artifacts.os.replace", refuse)

    with pytest.raises(OSError, match="disk full"):
        atomic_write_text(target, '{"v": 2}\n')

    assert sorted(path.name for path in target.parent.iterdir()) == ["coherence.json"]
    assert target.read_text(encoding="utf-8") == "{}\n"


def test_load_missing_file_returns_baseline(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path / "meta")

    assert store.load("residue.json", _parse, lambda: {"items": []}) == {"items": []}


def test_load_round_trips_written_artifacts(tmp_path: Path) -> None:
    store = ArtifactStore(tmp_path / "meta")

    written = store.write_all({"residue.json": {"items": [1]}, "attribution.json": {"items": []}})

    assert sorted(path.name for path in written) == ["attribution.json", "residue.json"]
    assert store.load("residue.json", _parse, lambda: {"items": []}) == {"items": [1]}


def test_malformed_artifact_is_reinitialized(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    meta = tmp_path / "meta"
    meta.mkdir()
    (meta / "residue.json").write_text(json.dumps({"unexpected": True}), encoding="utf-8")
    (meta / "attribution.json").write_text("{not json", encoding="utf-8")
    store = ArtifactStore(meta)

    with caplog.at_level(logging.WARNING, logger="distillmeta"):
        residue = store.load("residue.json", _parse, lambda: {"items": []})
        graph = store.load("attribution.json", _parse, lambda: {"items": []})

    assert residue == {"items": []}
    assert graph == {"items": []}
    assert "Malformed residue.json" in caplog.text
    assert "Could not parse attribution.json" in caplog.text
