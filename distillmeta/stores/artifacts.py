"""JSON artifact persistence for the meta directory."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from ..logging import get_logger

T = TypeVar("T")


def render_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def atomic_write_text(path: Path, content: str) -> None:
    """Write through a sibling temp file so readers never observe a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class ArtifactStore:
    """Loads and writes the artifacts owned by the engine."""

    def __init__(self, meta_dir: Path) -> None:
        self.meta_dir = meta_dir
        self.logger = get_logger("stores")

    def path(self, filename: str) -> Path:
        return self.meta_dir / filename

    def read(self, filename: str) -> Optional[Any]:
        """Return parsed JSON, or ``None`` when the file is missing or unreadable."""
        path = self.path(filename)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            self.logger.warning("Could not read %s, starting fresh: %s", filename, exc)
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            self.logger.warning("Could not parse %s, starting fresh: %s", filename, exc)
            return None

    def load(
        self,
        filename: str,
        parse: Callable[[Any], T],
        baseline: Callable[[], T],
    ) -> T:
        """Load ``filename`` through ``parse``; malformed state falls back to ``baseline``."""
        payload = self.read(filename)
        if payload is None:
            return baseline()
        try:
            return parse(payload)
        except (ValueError, TypeError, KeyError) as exc:
            self.logger.warning("Malformed %s, reinitializing: %s", filename, exc)
            return baseline()

    def write_all(self, artifacts: Mapping[str, Any]) -> List[Path]:
        """Serialize every artifact first, then replace the files one by one."""
        rendered: Dict[str, str] = {name: render_json(payload) for name, payload in artifacts.items()}
        written: List[Path] = []
        for filename, content in rendered.items():
            path = self.path(filename)
            atomic_write_text(path, content)
            written.append(path)
            self.logger.debug("Wrote %s", path)
        return written


__all__ = ["ArtifactStore", "atomic_write_text", "render_json"]
