"""CLI parser and entrypoint tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from distillmeta import cli
from distillmeta.cli import _build_parser
from distillmeta.orchestrator import FatalInputError, RunOutcome


def test_cli_accepts_verbose_before_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--verbose", "score"])
    assert args.verbose is True
    assert args.command == "score"


def test_cli_accepts_verbose_after_command() -> None:
    parser = _build_parser()
    args = parser.parse_args(["run", "--verbose"])
    assert args.verbose is True
    assert args.command == "run"


def test_cli_accepts_offline_flag_and_path() -> None:
    parser = _build_parser()
    args = parser.parse_args(["residue", "notes", "--offline"])
    assert args.command == "residue"
    assert args.path == "notes"
    assert args.offline is True


def test_cli_defaults_to_current_directory() -> None:
    parser = _build_parser()
    args = parser.parse_args(["report"])
    assert args.path == "."
    assert args.offline is False
    assert args.verbose is False


def test_cli_serve_options() -> None:
    parser = _build_parser()
    args = parser.parse_args(["serve", "--port", "9000"])
    assert args.host == "127.0.0.1"
    assert args.port == 9000


class _StubOrchestrator:
    def __init__(self, outcome: RunOutcome | None = None, error: Exception | None = None) -> None:
        self.outcome = outcome
        self.error = error

    def run_score(self) -> RunOutcome:
        if self.error is not None:
            raise self.error
        assert self.outcome is not None
        return self.outcome

    def run_report(self) -> dict:
        return {"overall": {"current": 0.8}}


def _install(monkeypatch: pytest.MonkeyPatch, orchestrator: _StubOrchestrator) -> list[tuple[str, bool]]:
    created: list[tuple[str, bool]] = []

    class _Factory:
        @staticmethod
        def from_path(path: str, *, offline: bool = False) -> _StubOrchestrator:
            created.append((path, offline))
            return orchestrator

    monkeypatch.setattr(cli, "Orchestrator", _Factory)
    return created


def _outcome(passed: bool) -> RunOutcome:
    return RunOutcome(
        passed=passed,
        gate="publication",
        threshold=0.85,
        overall_score=0.9 if passed else 0.6,
        components={"signal": 0.9, "feedback": 0.9, "bounded": 0.9, "elastic": 0.9},
    )


def test_score_prints_outcome_and_succeeds(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    created = _install(monkeypatch, _StubOrchestrator(_outcome(True)))

    cli.main(["score", "notes", "--offline"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["passed"] is True
    assert payload["overallScore"] == pytest.approx(0.9)
    assert created == [("notes", True)]


def test_failed_gate_exits_nonzero(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _StubOrchestrator(_outcome(False)))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["score"])

    assert excinfo.value.code == 1
    assert json.loads(capsys.readouterr().out)["passed"] is False


def test_fatal_input_reports_message(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _StubOrchestrator(error=FatalInputError("No documents found under content")))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["score"])

    assert excinfo.value.code == 1
    assert "distillmeta score failed: No documents found under content" in capsys.readouterr().err


def test_report_prints_json(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    _install(monkeypatch, _StubOrchestrator())

    cli.main(["report"])

    assert json.loads(capsys.readouterr().out) == {"overall": {"current": 0.8}}


def test_cli_accepts_quiet_and_log_file() -> None:
    parser = _build_parser()
    args = parser.parse_args(["--quiet", "--log-file", "run.log", "attribute"])
    assert args.quiet is True
    assert args.log_file == Path("run.log")
