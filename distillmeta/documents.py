"""Markdown document loading: YAML front matter, heading sections and topics."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .logging import get_logger
from .models import Document, Section
from .text import extract_topics

_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
_HEADING = re.compile(r"^#{1,3}\s+(.+)$", re.MULTILINE)
_MARKDOWN_SUFFIXES = (".md", ".markdown")
_MAIN_DOCUMENT = "index.md"


def split_front_matter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return ``(front_matter, body)``; raises ``yaml.YAMLError`` on bad front matter."""
    match = _FRONT_MATTER.match(text)
    if not match:
        return {}, text
    loaded = yaml.safe_load(match.group(1))
    front_matter = loaded if isinstance(loaded, dict) else {}
    return {str(key): value for key, value in front_matter.items()}, text[match.end():]


def front_matter_list(document: Document, key: str) -> List[str]:
    """Read a front matter field that may hold a single string or a list of strings."""
    value = document.front_matter.get(key)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None]
    return [str(value)]


def main_topics(document: Document, *, limit: int = 10, min_length: int = 4) -> List[str]:
    """Topics a document declares about itself through title, tags and keywords."""
    parts = [document.title or ""]
    parts.extend(front_matter_list(document, "tags"))
    parts.extend(front_matter_list(document, "keywords"))
    return extract_topics(" ".join(parts), limit=limit, min_length=min_length)


def main_document(documents: Sequence[Document]) -> Optional[Document]:
    """Prefer the content index page, else the first document in path order."""
    for document in documents:
        if Path(document.path).name == _MAIN_DOCUMENT:
            return document
    return documents[0] if documents else None


class DocumentParser:
    """Loads markdown documents below the content directory."""

    def __init__(self, root: Path, *, topic_count: int = 10, min_topic_length: int = 4) -> None:
        self.root = root
        self.topic_count = topic_count
        self.min_topic_length = min_topic_length
        self.logger = get_logger("documents")

    def load(self, content_dir: Path) -> List[Document]:
        """Parse every markdown file below ``content_dir``; unreadable files are skipped."""
        if not content_dir.is_dir():
            return []
        documents: List[Document] = []
        paths = sorted(
            path
            for path in content_dir.rglob("*")
            if path.is_file() and path.suffix.lower() in _MARKDOWN_SUFFIXES
        )
        for path in paths:
            label = self._relative(path)
            try:
                text = path.read_text(encoding="utf-8")
                documents.append(self.parse(label, text))
            except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
                self.logger.warning("Could not parse %s: %s", label, exc)
        self.logger.debug("Loaded %d document(s) from %s", len(documents), content_dir)
        return documents

    def parse(self, path: str, text: str) -> Document:
        front_matter, body = split_front_matter(text)
        document = Document(path=path, front_matter=front_matter, body=body)
        document.sections = self._sections(document)
        return document

    def _sections(self, document: Document) -> List[Section]:
        matches = list(_HEADING.finditer(document.body))
        sections: List[Section] = []
        for index, match in enumerate(matches):
            title = match.group(1).strip()
            end = matches[index + 1].start() if index + 1 < len(matches) else len(document.body)
            body = document.body[match.end():end].strip()
            sections.append(Section(title=title, body=body, extracted_topics=self._topics(f"{title} {body}")))

        if not sections:
            title = document.title or "Article"
            sections.append(
                Section(title=title, body=document.body.strip(), extracted_topics=self._topics(document.body))
            )
        return sections

    def _topics(self, text: str) -> List[str]:
        return extract_topics(text, limit=self.topic_count, min_length=self.min_topic_length)

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()


__all__ = [
    "DocumentParser",
    "front_matter_list",
    "main_document",
    "main_topics",
    "split_front_matter",
]
