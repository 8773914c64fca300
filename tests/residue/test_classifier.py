"""Tests for residue detection and classification."""

from __future__ import annotations

from pathlib import Path

import pytest

from distillmeta.config import EngineConfig
from distillmeta.documents import DocumentParser
from distillmeta.models import EventKind
from distillmeta.residue import ResidueCatalog, ResidueClassifier, residue_id
from distillmeta.residue.classifier import checked_option, issue_section
from tests._fixtures.activity import activity_log, event
from tests._fixtures.repo_builder import at

_PARSER = DocumentParser(Path("/repo"))

ISSUE_BODY = """**Section**: Methods

### Residue Description
The link between sleep and recall is circular and recursive.

### Residue Classification
- [ ] Attribution Void
- [x] Recursive Collapse (self-reference)
- [x] Boundary Erosion

### Recursive Depth
- [ ] Surface
- [x] Deep

### Residue Valence
- [x] Negative

### Failure Mode
Explanation loops back on itself.
"""


def _classifier() -> ResidueClassifier:
    return ResidueClassifier(EngineConfig(root=Path("/repo")), clock=lambda: at(20))


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Where is the source of this evidence?", "Attribution Void"),
        ("This definition is unclear and vague", "Token Hesitation"),
        ("A circular, recursive loop", "Recursive Collapse"),
        ("The scope boundary is fuzzy", "Boundary Erosion"),
        ("These claims are inconsistent and in conflict", "Phase Misalignment"),
        ("Nothing recognisable here", "Token Hesitation"),
    ],
)
def test_classify_by_keyword_votes(text: str, expected: str) -> None:
    assert _classifier().classify(text) == expected


def test_classify_ties_go_to_earlier_class() -> None:
    # one Attribution Void keyword and one Boundary Erosion keyword
    assert _classifier().classify("missing citation at the edge") == "Attribution Void"


def test_depth_markers() -> None:
    classifier = _classifier()

    assert classifier.depth("A fundamental gap") == "deep"
    assert classifier.depth("The theory is thin") == "intermediate"
    assert classifier.depth("Typo") == "surface"


def test_detects_front_matter_sentinel_and_pattern_residue() -> None:
    document = _PARSER.parse(
        "content/essay.md",
        "---\n"
        "title: Essay\n"
        "residue:\n"
        "  - description: Source of the dataset is missing\n"
        "    type: attribution void\n"
        "    depth: intermediate\n"
        "    valence: negative\n"
        "    line: 4\n"
        "---\n"
        "Intro text.\n"
        "🜏 The framing feels ambiguous 🜏\n"
        "This is beyond the scope of the essay.\n",
    )

    candidates = _classifier().detect([document], activity_log())

    by_source = {candidate.source: candidate for candidate in candidates}
    author = by_source["content"]
    assert author.classification == "Attribution Void"
    assert author.recursive_depth == "intermediate"
    assert author.valence == "negative"
    assert author.section == "essay.md"
    assert author.location == {"file": "content/essay.md", "line": 4}
    assert author.detected == "2024-03-20T12:00:00Z"

    inline = by_source["inline"]
    assert inline.description == "The framing feels ambiguous"
    assert inline.classification == "Token Hesitation"
    assert inline.valence == "positive"
    assert inline.location == {"file": "content/essay.md", "line": 2}

    detections = {candidate.failure_mode: candidate for candidate in candidates if candidate.source == "detection"}
    assert set(detections) == {"Explicit uncertainty", "Boundary acknowledgment"}
    boundary = detections["Boundary acknowledgment"]
    assert boundary.description == "beyond the scope"
    assert boundary.classification == "Boundary Erosion"
    assert boundary.status == "pending"
    assert boundary.reporter == "system"


def test_detection_lexicon_comes_from_config() -> None:
    config = EngineConfig(root=Path("/repo"))
    config.residue.detection_patterns = {"Hedging": r"\barguably\b"}
    config.residue.detection_classes = {"Hedging": "Phase Misalignment"}
    classifier = ResidueClassifier(config, clock=lambda: at(20))
    document = _PARSER.parse(
        "content/essay.md",
        "Recall is arguably seasonal.\nThis is beyond the scope of the essay.\n",
    )

    detections = classifier.from_patterns(document, "2024-03-20T12:00:00Z")

    assert [(item.failure_mode, item.classification, item.description) for item in detections] == [
        ("Hedging", "Phase Misalignment", "arguably")
    ]
    assert detections[0].location == {"file": "content/essay.md", "line": 1}


def test_pull_comment_residue_requires_marker_or_phrase() -> None:
    activity = activity_log(
        [
            event(EventKind.PR_COMMENT, "editor", at(5), "pulls/7", commentId=9, url="u", body="🜏 Unclear provenance of figure 2 🜏"),
            event(EventKind.PR_COMMENT, "editor", at(6), "pulls/7", commentId=10, url="u", body="Nice work"),
        ]
    )

    candidates = _classifier().from_pull_comments(activity)

    assert len(candidates) == 1
    candidate = candidates[0]
    assert candidate.description == "Unclear provenance of figure 2"
    assert candidate.section == "Pull Request #7"
    assert candidate.reporter == "editor"
    assert candidate.detected == "2024-03-05T12:00:00Z"
    assert candidate.reference == {"ref": "pulls/7", "commentId": 9, "url": "u"}


def test_issue_form_is_parsed() -> None:
    issue = event(
        EventKind.ISSUE_OPEN,
        "reader",
        at(8),
        "issues/12",
        number=12,
        title="[RESIDUE] Circular methods",
        body=ISSUE_BODY,
        labels=[],
        url="https://github.com/octo/notes/issues/12",
    )
    classifier = _classifier()

    assert classifier.is_residue_issue(issue)
    instance = classifier.parse_issue(issue)

    assert instance.description == "The link between sleep and recall is circular and recursive."
    assert instance.section == "Methods"
    assert instance.classification == "Recursive Collapse"
    assert instance.recursive_depth == "deep"
    assert instance.valence == "negative"
    assert instance.failure_mode == "Explanation loops back on itself."
    assert instance.id == residue_id("issue", "Methods", instance.description)
    assert instance.reference == {"ref": "issues/12", "number": 12, "url": "https://github.com/octo/notes/issues/12"}


def test_issue_label_marks_residue() -> None:
    labelled = event(EventKind.ISSUE_OPEN, "reader", at(8), "issues/3", title="Gap", body="", labels=["meta:residue"])
    plain = event(EventKind.ISSUE_OPEN, "reader", at(8), "issues/4", title="Gap", body="", labels=["bug"])

    assert _classifier().is_residue_issue(labelled)
    assert not _classifier().is_residue_issue(plain)


def test_issue_helpers() -> None:
    assert issue_section(ISSUE_BODY, "Failure Mode") == "Explanation loops back on itself."
    assert issue_section(ISSUE_BODY, "Missing") is None
    assert checked_option(ISSUE_BODY, "Recursive Depth") == "Deep"
    assert checked_option("### Residue Valence\n- [ ] Neutral\n", "Residue Valence") is None


def test_update_is_idempotent_and_preserves_status() -> None:
    document = _PARSER.parse("content/essay.md", "🜏 Unclear boundary between terms 🜏\n")
    catalog = ResidueCatalog.baseline("octo/notes", at(20))
    classifier = _classifier()

    added = classifier.update(catalog, [document], activity_log())
    assert len(added) == len(catalog.instances) > 0
    catalog.instances[0].status = "resolved"
    catalog.instances[0].resolved_at = "2024-03-19T00:00:00Z"

    assert classifier.update(catalog, [document], activity_log()) == []
    assert catalog.instances[0].status == "resolved"
    assert catalog.meta["count"] == len(catalog.instances)
    assert catalog.meta["metrics"]["byStatus"]["resolved"] == 1
