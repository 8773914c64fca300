"""Revision history reading via ``git log --numstat``."""

from __future__ import annotations

import re
import subprocess
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

LOG_FORMAT = "%H|%an|%ae|%at|%s"

_NUMSTAT = re.compile(r"^(\d+|-)\s+(\d+|-)\s+(.+)$")
_NO_COMMITS_MARKERS = ("does not have any commits yet", "bad default revision")


class GitLogError(RuntimeError):
    """Raised when the revision history cannot be read."""


@dataclass(frozen=True)
class FileDelta:
    path: str
    additions: int
    deletions: int


@dataclass(frozen=True)
class CommitRecord:
    """One commit header plus its per-file line deltas."""

    hash: str
    author: str
    email: str
    timestamp: datetime
    message: str
    files: Tuple[FileDelta, ...] = ()


def parse_git_log(output: str) -> List[CommitRecord]:
    """Parse ``git log --numstat --format=%H|%an|%ae|%at|%s`` output.

    Binary deltas reported as ``-`` count as zero lines. Lines that are neither
    a header nor a numstat row are ignored.
    """
    commits: List[CommitRecord] = []
    header: Optional[Tuple[str, str, str, datetime, str]] = None
    files: List[FileDelta] = []

    for line in output.splitlines():
        if not line.strip():
            continue
        numstat = _NUMSTAT.match(line)
        if numstat and header is not None:
            files.append(
                FileDelta(
                    path=numstat.group(3).strip(),
                    additions=_count(numstat.group(1)),
                    deletions=_count(numstat.group(2)),
                )
            )
            continue
        if "|" not in line:
            continue
        parsed = _parse_header(line)
        if parsed is None:
            continue
        if header is not None:
            commits.append(CommitRecord(*header, files=tuple(files)))
        header, files = parsed, []

    if header is not None:
        commits.append(CommitRecord(*header, files=tuple(files)))
    return commits


def _parse_header(line: str) -> Optional[Tuple[str, str, str, datetime, str]]:
    parts = line.split("|", 4)
    if len(parts) < 4:
        return None
    commit_hash, author, email, raw_timestamp = parts[:4]
    message = parts[4] if len(parts) == 5 else ""
    try:
        timestamp = datetime.fromtimestamp(int(raw_timestamp.strip()), UTC)
    except ValueError:
        return None
    return commit_hash.strip(), author.strip(), email.strip(), timestamp, message.strip()


def _count(value: str) -> int:
    return 0 if value == "-" else int(value)


class GitLogReader:
    """Reads commits from a local repository through an injectable command runner."""

    def __init__(self, runner: Callable[..., str] | None = None) -> None:
        self._runner = runner or self._default_runner

    def read(self, repo_path: Path) -> List[CommitRecord]:
        """Return every commit reachable from HEAD; an unborn branch yields ``[]``."""
        if not (repo_path / ".git").exists():
            raise GitLogError(f"{repo_path} is not a git repository")
        try:
            output = self._run(
                ["git", "log", "--numstat", f"--format={LOG_FORMAT}"], cwd=repo_path
            )
        except FileNotFoundError as exc:
            raise GitLogError("Unable to locate the git executable") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or "").strip()
            if any(marker in stderr for marker in _NO_COMMITS_MARKERS):
                return []
            raise GitLogError(f"git log failed with exit code {exc.returncode}: {stderr}") from exc
        return parse_git_log(output)

    def head_revision(self, repo_path: Path) -> Optional[str]:
        try:
            output = self._run(["git", "rev-parse", "HEAD"], cwd=repo_path)
        except (FileNotFoundError, subprocess.CalledProcessError):
            return None
        revision = output.strip()
        return revision or None

    def _run(self, args: Sequence[str], *, cwd: Path) -> str:
        return self._runner(args, cwd=cwd)

    @staticmethod
    def _default_runner(args: Iterable[str], *, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


__all__ = ["CommitRecord", "FileDelta", "GitLogError", "GitLogReader", "LOG_FORMAT", "parse_git_log"]
