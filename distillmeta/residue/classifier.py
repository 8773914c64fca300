"""Residue detection and keyword classification."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..config import EngineConfig
from ..constants import DEFAULT_RESIDUE_CLASS, RESIDUE_TAXONOMY
from ..logging import get_logger
from ..models import ActivityLog, Document, Event, EventKind, format_timestamp, utc_now
from ..text import compile_alternation, contains_word
from .catalog import ResidueCatalog, ResidueInstance


@dataclass(frozen=True)
class DetectionPattern:
    name: str
    regex: re.Pattern[str]
    classification: str


def detection_patterns(patterns: Mapping[str, str], classes: Mapping[str, str]) -> List[DetectionPattern]:
    """Compile configured failure-mode patterns, case-insensitively, in declaration order."""
    return [
        DetectionPattern(name, re.compile(pattern, re.IGNORECASE), classes.get(name, DEFAULT_RESIDUE_CLASS))
        for name, pattern in patterns.items()
    ]


_CHECKBOX = re.compile(r"^\s*- \[(x|X| )\] (.+?)\s*$", re.MULTILINE)
_SECTION_LINE = re.compile(r"\*\*Section\*\*: *(.*?)\s*$", re.MULTILINE)


def residue_id(source: str, section: str, description: str) -> str:
    digest = hashlib.sha1(f"{source}\x00{section}\x00{description}".encode("utf-8")).hexdigest()
    return f"residue-{source}-{digest[:12]}"


def line_of(text: str, fragment: str) -> Optional[int]:
    """1-based line of the first line containing ``fragment`` (or its first line)."""
    needle = fragment.strip().splitlines()[0] if fragment.strip() else ""
    if not needle:
        return None
    for index, line in enumerate(text.splitlines(), start=1):
        if needle in line:
            return index
    return None


def issue_section(body: str, heading: str) -> Optional[str]:
    """Text under ``### heading`` up to the next ``###`` heading."""
    match = re.search(rf"^###\s+{re.escape(heading)}\s*$", body, re.MULTILINE)
    if not match:
        return None
    rest = body[match.end():]
    end = re.search(r"^###", rest, re.MULTILINE)
    return (rest[: end.start()] if end else rest).strip()


def checked_option(body: str, heading: str) -> Optional[str]:
    section = issue_section(body, heading)
    if section is None:
        return None
    for mark, label in _CHECKBOX.findall(section):
        if mark.lower() == "x":
            return label.strip()
    return None


class ResidueClassifier:
    """Produces residue candidates from documents and activity and merges them into a catalog."""

    def __init__(self, config: EngineConfig, *, clock: Callable[[], datetime] = utc_now) -> None:
        self.config = config
        self.clock = clock
        residue = config.residue
        self._deep = compile_alternation(residue.deep_markers, escape=True)
        self._intermediate = compile_alternation(residue.intermediate_markers, escape=True)
        self._sentinel = re.compile(rf"{re.escape(residue.marker)}\s*([\s\S]*?)(?:{re.escape(residue.marker)}|$)")
        self._patterns = detection_patterns(residue.detection_patterns, residue.detection_classes)
        self.logger = get_logger("residue")

    # ------------------------------------------------------------------
    # Classification

    def classify(self, text: str) -> str:
        """Keyword vote; ties go to the earlier class and no hits fall back to Token Hesitation."""
        best, best_score = DEFAULT_RESIDUE_CLASS, 0
        for name in RESIDUE_TAXONOMY:
            keywords = self.config.residue.keywords.get(name, [])
            score = sum(1 for keyword in keywords if contains_word(text, keyword))
            if score > best_score:
                best, best_score = name, score
        return best

    def depth(self, text: str) -> str:
        if self._deep.search(text):
            return "deep"
        if self._intermediate.search(text):
            return "intermediate"
        return "surface"

    def normalize_class(self, value: Any, description: str) -> str:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for name in RESIDUE_TAXONOMY:
                if lowered.startswith(name.lower()):
                    return name
        return self.classify(description)

    def normalize_depth(self, value: Any, description: str) -> str:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for name in ("deep", "intermediate", "surface"):
                if lowered.startswith(name):
                    return name
        return self.depth(description)

    @staticmethod
    def normalize_valence(value: Any) -> str:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for name in ("positive", "negative", "neutral"):
                if lowered.startswith(name):
                    return name
        return "neutral"

    # ------------------------------------------------------------------
    # Detection channels

    def detect(self, documents: Sequence[Document], activity: ActivityLog) -> List[ResidueInstance]:
        now = format_timestamp(self.clock())
        candidates: List[ResidueInstance] = []
        for document in documents:
            candidates.extend(self.from_front_matter(document, now))
            candidates.extend(self.from_sentinels(document, now))
            candidates.extend(self.from_patterns(document, now))
        candidates.extend(self.from_pull_comments(activity))
        candidates.extend(self.from_issues(activity))
        return candidates

    def from_front_matter(self, document: Document, detected: str) -> List[ResidueInstance]:
        entries = document.front_matter.get("residue")
        if not isinstance(entries, list):
            return []
        instances: List[ResidueInstance] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            description = str(entry.get("description") or "Author-identified residue").strip()
            section = str(entry.get("section") or _basename(document.path))
            line = entry.get("line")
            instances.append(
                ResidueInstance(
                    id=residue_id("content", section, description),
                    classification=self.normalize_class(entry.get("type"), description),
                    description=description,
                    section=section,
                    failure_mode=str(entry.get("failureMode") or "Unknown"),
                    recursive_depth=self.normalize_depth(entry.get("depth"), description),
                    valence=self.normalize_valence(entry.get("valence")),
                    detected=detected,
                    reporter="author",
                    source="content",
                    status="active",
                    location={"file": document.path, "line": line if isinstance(line, int) else None},
                )
            )
        return instances

    def from_sentinels(self, document: Document, detected: str) -> List[ResidueInstance]:
        section = _basename(document.path)
        instances: List[ResidueInstance] = []
        for match in self._sentinel.finditer(document.body):
            description = match.group(1).strip()
            if not description:
                continue
            instances.append(
                ResidueInstance(
                    id=residue_id("inline", section, description),
                    classification=self.classify(description),
                    description=description,
                    section=section,
                    failure_mode="Explicit marker",
                    recursive_depth=self.depth(description),
                    valence="positive",
                    detected=detected,
                    reporter="author",
                    source="inline",
                    status="active",
                    location={"file": document.path, "line": line_of(document.body, description)},
                )
            )
        return instances

    def from_patterns(self, document: Document, detected: str) -> List[ResidueInstance]:
        section = _basename(document.path)
        instances: List[ResidueInstance] = []
        for pattern in self._patterns:
            for match in pattern.regex.finditer(document.body):
                description = match.group(0).strip()
                if not description:
                    continue
                instances.append(
                    ResidueInstance(
                        id=residue_id("detection", section, description),
                        classification=pattern.classification,
                        description=description,
                        section=section,
                        failure_mode=pattern.name,
                        recursive_depth="surface",
                        valence="neutral",
                        detected=detected,
                        reporter="system",
                        source="detection",
                        status="pending",
                        location={"file": document.path, "line": line_of(document.body, description)},
                    )
                )
        return instances

    def from_pull_comments(self, activity: ActivityLog) -> List[ResidueInstance]:
        residue = self.config.residue
        triggers = [residue.marker, *residue.comment_phrases]
        instances: List[ResidueInstance] = []
        for event in activity.of_kind(EventKind.PR_COMMENT):
            body = str(event.payload.get("body", ""))
            if not any(trigger in body for trigger in triggers):
                continue
            marked = self._sentinel.search(body)
            description = (marked.group(1) if marked else body).strip()
            if not description:
                continue
            number = event.target_ref.split("/", 1)[-1]
            section = f"Pull Request #{number}"
            instances.append(
                ResidueInstance(
                    id=residue_id("pr_comment", section, description),
                    classification=self.classify(description),
                    description=description,
                    section=section,
                    failure_mode="Review feedback",
                    recursive_depth=self.depth(description),
                    valence="neutral",
                    detected=format_timestamp(event.timestamp),
                    reporter=event.actor,
                    source="pr_comment",
                    status="active",
                    reference=_reference(event, "commentId"),
                )
            )
        return instances

    def from_issues(self, activity: ActivityLog) -> List[ResidueInstance]:
        instances: List[ResidueInstance] = []
        for event in activity.of_kind(EventKind.ISSUE_OPEN):
            if not self.is_residue_issue(event):
                continue
            instances.append(self.parse_issue(event))
        return instances

    def is_residue_issue(self, event: Event) -> bool:
        residue = self.config.residue
        labels = event.payload.get("labels", [])
        title = str(event.payload.get("title", ""))
        return residue.issue_label in labels or residue.issue_title_tag in title

    def parse_issue(self, event: Event) -> ResidueInstance:
        body = str(event.payload.get("body", ""))
        title = str(event.payload.get("title", ""))
        description = issue_section(body, "Residue Description") or title
        section_match = _SECTION_LINE.search(body)
        section = section_match.group(1).strip() if section_match else ""
        return ResidueInstance(
            id=residue_id("issue", section, description),
            classification=self.normalize_class(checked_option(body, "Residue Classification"), description),
            description=description,
            section=section,
            failure_mode=issue_section(body, "Failure Mode") or "Unknown",
            recursive_depth=self.normalize_depth(checked_option(body, "Recursive Depth"), description),
            valence=self.normalize_valence(checked_option(body, "Residue Valence")),
            detected=format_timestamp(event.timestamp),
            reporter=event.actor,
            source="issue",
            status="active",
            reference=_reference(event, "number"),
        )

    # ------------------------------------------------------------------
    # Catalog maintenance

    def update(
        self, catalog: ResidueCatalog, documents: Sequence[Document], activity: ActivityLog
    ) -> List[ResidueInstance]:
        added = catalog.merge(self.detect(documents, activity))
        for instance in added:
            self.logger.debug("Added residue %s (%s)", instance.id, instance.classification)
        catalog.recompute_metrics(self.clock(), recent_days=self.config.residue.recent_days)
        self.logger.info("Residue catalog: %d new, %d total", len(added), len(catalog.instances))
        return added


def _basename(path: str) -> str:
    return PurePosixPath(path).name


def _reference(event: Event, key: str) -> Dict[str, Any]:
    return {"ref": event.target_ref, key: event.payload.get(key), "url": event.payload.get("url")}


__all__ = [
    "DetectionPattern",
    "detection_patterns",
    "ResidueClassifier",
    "checked_option",
    "issue_section",
    "residue_id",
]
