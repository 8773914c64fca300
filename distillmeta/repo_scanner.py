"""Walks a content repository and records each file with its directory role."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .models import FileMeta, RepoManifest

# Tooling and build output that never counts as repository content.
_SKIPPED_DIRS = frozenset(
    {".git", ".hg", ".svn", ".venv", "node_modules", "__pycache__", ".pytest_cache", ".mypy_cache", ".idea", "_site"}
)
_SKIPPED_FILES = frozenset({".DS_Store", "Thumbs.db"})


@dataclass(frozen=True)
class IgnoreRule:
    """One gitignore-style pattern from ``.gitignore`` or ``exclude_paths``."""

    pattern: str
    directory_only: bool = False
    anchored: bool = False
    negate: bool = False

    @classmethod
    def parse(cls, line: str) -> Optional["IgnoreRule"]:
        """Build a rule from one pattern line; blanks and comments yield ``None``."""
        text = line.strip()
        if not text or text.startswith("#"):
            return None
        negate = text.startswith("!")
        text = text[1:] if negate else text
        directory_only = text.endswith("/")
        text = text.rstrip("/")
        anchored = text.startswith("/")
        text = text.lstrip("/")
        if not text:
            return None
        return cls(pattern=text, directory_only=directory_only, anchored=anchored, negate=negate)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored or "/" in self.pattern:
            return fnmatchcase(rel_path, self.pattern)
        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def ignored(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    """Apply rules in order; the last matching rule decides."""
    verdict = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            verdict = not rule.negate
    return verdict


def read_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except FileNotFoundError:
        return []
    return [rule for rule in map(IgnoreRule.parse, lines) if rule is not None]


class RepoScanner:
    """Produces a :class:`RepoManifest` for a repository checkout.

    Files below the configured content, data, code and meta directories take
    that directory's role; everything else is ``other``.
    """

    def __init__(
        self,
        *,
        content_dir: str = "content",
        data_dir: str = "data",
        code_dir: str = "code",
        meta_dir: str = "meta",
        exclude_paths: Iterable[str] = (),
    ) -> None:
        self._roles: Dict[str, str] = {
            content_dir.strip("/"): "content",
            data_dir.strip("/"): "data",
            code_dir.strip("/"): "code",
            meta_dir.strip("/"): "meta",
        }
        self._excludes = [rule for rule in map(IgnoreRule.parse, exclude_paths) if rule is not None]

    def scan(self, root: str) -> RepoManifest:
        """Return every non-ignored file below ``root`` with its size and role."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Repository path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Repository path is not a directory: {root}")

        rules = read_gitignore(root_path / ".gitignore") + self._excludes
        files = [
            FileMeta(path=rel_path, size=(root_path / rel_path).stat().st_size, role=self.role_of(rel_path))
            for rel_path in self._walk(root_path, rules)
        ]
        return RepoManifest(root=str(root_path), files=files)

    def role_of(self, rel_path: str) -> str:
        for prefix, role in self._roles.items():
            if prefix and rel_path.startswith(f"{prefix}/"):
                return role
        return "other"

    @staticmethod
    def _walk(root: Path, rules: Sequence[IgnoreRule]) -> Iterator[str]:
        for dirpath, dirnames, filenames in os.walk(root):
            base = Path(dirpath).relative_to(root).as_posix()
            prefix = "" if base == "." else f"{base}/"
            dirnames[:] = [
                name
                for name in sorted(dirnames)
                if name not in _SKIPPED_DIRS and not ignored(prefix + name, True, rules)
            ]
            for name in sorted(filenames):
                rel_path = prefix + name
                if name in _SKIPPED_FILES or ignored(rel_path, False, rules):
                    continue
                yield rel_path


__all__ = ["IgnoreRule", "RepoScanner", "ignored", "read_gitignore"]
