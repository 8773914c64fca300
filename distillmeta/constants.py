"""Default lexicons, weights and remediation copy used by the analysis engine."""

from __future__ import annotations

from typing import Dict, List, Tuple

CONFIG_FILENAME = ".distill.yml"

CITATION_PATTERN = r"\[\^[^\]]+\]"

CLAIM_TERMS: List[str] = [
    r"show[s]?",
    r"demonstrate[s]?",
    r"prove[s]?",
    r"evidence",
    r"find(ing)?[s]?",
    r"suggest[s]?",
    r"indicate[s]?",
    r"reveal[s]?",
    r"establish(es|ed)?",
    r"confirm[s]?",
    r"conclude[s]?",
]

FEEDBACK_TERMS: List[str] = [
    "address",
    "fix",
    "improve",
    "update",
    "respond",
    "incorporate",
    "feedback",
    "review",
    "suggestion",
    "comment",
]

TOPIC_STOPWORDS = frozenset(
    {
        "a", "an", "the", "and", "but", "or", "for", "nor", "on", "at", "to", "from",
        "by", "about", "as", "in", "of", "with", "during", "including", "until", "against",
        "among", "throughout", "despite", "towards", "upon", "is", "are", "was", "were",
        "be", "been", "being", "have", "has", "had", "do", "does", "did", "can", "could",
        "shall", "should", "will", "would", "may", "might", "must", "this", "that", "these",
        "those", "i", "you", "he", "she", "it", "we", "they", "their", "our", "your", "my",
        "his", "her", "its",
    }
)

SCOPE_STOPWORDS = frozenset({"this", "that", "with", "from", "about"})

SIGNAL_WEIGHTS: Dict[str, float] = {"citation": 0.3, "claims": 0.3, "data": 0.2, "code": 0.2}
FEEDBACK_WEIGHTS: Dict[str, float] = {
    "open_issues": 0.2,
    "resolution": 0.3,
    "pr_integration": 0.3,
    "feedback_commits": 0.2,
}
BOUNDED_WEIGHTS: Dict[str, float] = {"scope": 0.3, "drift": 0.3, "terms": 0.2, "method": 0.2}
ELASTIC_WEIGHTS: Dict[str, float] = {
    "contradiction": 0.25,
    "perspective": 0.25,
    "uncertainty": 0.25,
    "limitation": 0.25,
}

# Factors with no text analysis behind them yet; they report these fixed values.
PLACEHOLDER_SCORES: Dict[str, float] = {
    "terms": 0.85,
    "method": 0.9,
    "contradiction": 0.8,
    "perspective": 0.7,
    "uncertainty": 0.8,
    "limitation": 0.85,
}

CODE_SUFFIXES: List[str] = [".py", ".r", ".js", ".ipynb"]
RESULT_SUFFIXES: List[str] = [".png", ".jpg", ".svg", ".csv"]

FACTOR_REMEDIATIONS: Dict[str, Dict[str, str]] = {
    "signal": {
        "citation": "Strengthen citation network by adding more references to support claims",
        "claims": "Address unsupported claims by providing evidence or clarifying as hypotheses",
        "data": "Improve data integrity by including source data and validation steps",
        "code": "Ensure code and results are consistent by updating analysis or clarifying discrepancies",
    },
    "feedback": {
        "open_issues": "Address open issues more promptly to improve feedback engagement",
        "resolution": "Improve issue resolution rate by incorporating feedback into revisions",
        "pr_integration": "Better integrate PR review feedback into content updates",
        "feedback_commits": "Ensure content evolution reflects engagement with critical feedback",
    },
    "bounded": {
        "scope": "Ensure content stays within declared scope by focusing on core topics",
        "drift": "Reduce topic drift by maintaining consistent focus throughout the article",
        "terms": "Improve term consistency by using defined terminology throughout the article",
        "method": "Maintain methodological boundaries by clarifying approach limitations",
    },
    "elastic": {
        "contradiction": "Better acknowledge and integrate contradictory evidence or perspectives",
        "perspective": "Include multiple perspectives on controversial or complex topics",
        "uncertainty": "More clearly represent uncertainty in findings and conclusions",
        "limitation": "Acknowledge limitations of the approach, data, or conclusions",
    },
}

COMPONENT_RECOMMENDATIONS: Dict[str, List[str]] = {
    "signal": [
        "Add more citations to support claims",
        "Include evidence for empirical statements",
        "Link assertions to data or references",
        "Clarify which parts are speculation vs. established fact",
    ],
    "feedback": [
        "Address open issues more promptly",
        "Incorporate reviewer feedback more thoroughly",
        "Document changes made in response to feedback",
        "Implement suggestions from past reviews",
    ],
    "bounded": [
        "More clearly define scope boundaries",
        "Reduce topic drift in later sections",
        "Ensure consistent terminology throughout",
        "Clarify what is in-scope vs. out-of-scope",
    ],
    "elastic": [
        "Better acknowledge contradictory evidence",
        "Include multiple perspectives on complex topics",
        "More explicitly acknowledge limitations",
        "Represent uncertainty more clearly",
    ],
}

RESIDUE_MARKER = "🜏"

RESIDUE_TAXONOMY: Tuple[str, ...] = (
    "Attribution Void",
    "Token Hesitation",
    "Recursive Collapse",
    "Boundary Erosion",
    "Phase Misalignment",
)

DEFAULT_RESIDUE_CLASS = "Token Hesitation"

RESIDUE_KEYWORDS: Dict[str, List[str]] = {
    "Attribution Void": [
        "source", "attribution", "citation", "where", "provenance", "origin",
        "evidence", "support", "basis", "missing reference",
    ],
    "Token Hesitation": [
        "uncertain", "unclear", "ambiguous", "vague", "confusing", "hesitation",
        "imprecise", "tension", "ambivalent", "wavering",
    ],
    "Recursive Collapse": [
        "recursive", "self-reference", "circular", "loop", "regress", "collapse",
        "depth", "meta", "self-aware", "reflection", "infinite",
    ],
    "Boundary Erosion": [
        "boundary", "scope", "limit", "extent", "border", "edge", "constraint",
        "domain", "territory", "definition", "delineation",
    ],
    "Phase Misalignment": [
        "inconsistent", "contradiction", "misalignment", "conflict", "divergent",
        "phase", "direction", "vector", "opposing", "incoherent",
    ],
}

DEEP_MARKERS: List[str] = ["deep", "profound", "fundamental", "ontological", "conceptual"]
INTERMEDIATE_MARKERS: List[str] = [
    "explain", "explanation", "theory", "understand", "concept", "framework",
]

RESIDUE_COMMENT_PHRASES: List[str] = ["symbolic residue", "residue detection"]
RESIDUE_ISSUE_LABEL = "meta:residue"
RESIDUE_ISSUE_TITLE_TAG = "[RESIDUE]"
RESIDUE_BACKLOG_LIMIT = 10

# Unmarked residue: failure mode -> case-insensitive pattern over document bodies.
RESIDUE_DETECTION_PATTERNS: Dict[str, str] = {
    "Explicit uncertainty": (
        r"\b(?:unclear|uncertain|ambiguous|not sure|may be|might be|perhaps|possibly|I think)\b"
    ),
    "Citation needed": (
        r"\b(?:according to|research shows|studies indicate|evidence suggests)\b"
        r"(?:(?!\[\^).)*?(?:\.|\?|!|\n)"
    ),
    "Self-reference struggle": (
        r"\b(?:recursively|self-referential|meta|recursive|referring to itself)\b"
        r".*?(?:challenging|difficult|problem|issue|question)"
    ),
    "Boundary acknowledgment": (
        r"\b(?:beyond the scope|outside the scope|boundary|boundaries|limits|limitations|constraints)\b"
    ),
    "Contradiction acknowledgment": (
        r"\b(?:however|conversely|on the other hand|in contrast|paradoxically|contradicts"
        r"|contradicting|contradiction)\b"
    ),
}

RESIDUE_DETECTION_CLASSES: Dict[str, str] = {
    "Explicit uncertainty": "Token Hesitation",
    "Citation needed": "Attribution Void",
    "Self-reference struggle": "Recursive Collapse",
    "Boundary acknowledgment": "Boundary Erosion",
    "Contradiction acknowledgment": "Phase Misalignment",
}
