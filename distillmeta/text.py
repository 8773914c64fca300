"""Lightweight text heuristics shared by the scorer and the residue classifier."""

from __future__ import annotations

import re
from collections import Counter
from typing import AbstractSet, Iterable, List, Sequence

from .constants import TOPIC_STOPWORDS

_WORD_PATTERN = re.compile(r"[a-z0-9]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")
_SENTENCE_SPLIT = re.compile(r"\.\s+")


def tokenize(text: str) -> List[str]:
    """Lowercase ``text`` and return its alphanumeric runs."""
    return _WORD_PATTERN.findall(text.lower())


def split_paragraphs(text: str) -> List[str]:
    """Return the non-empty blank-line separated blocks of ``text``."""
    return [block.strip() for block in _PARAGRAPH_SPLIT.split(text) if block.strip()]


def split_sentences(text: str) -> List[str]:
    """Split on a period followed by whitespace, dropping empty fragments."""
    return [sentence for sentence in _SENTENCE_SPLIT.split(text) if sentence.strip()]


def extract_topics(
    text: str,
    *,
    limit: int = 10,
    min_length: int = 4,
    stopwords: AbstractSet[str] = TOPIC_STOPWORDS,
) -> List[str]:
    """Return up to ``limit`` most frequent substantive tokens.

    Ties keep first-occurrence order so the result is deterministic.
    """
    counts = Counter(
        token
        for token in tokenize(text)
        if token not in stopwords and len(token) >= min_length
    )
    return [term for term, _ in counts.most_common(limit)]


def jaccard(left: Sequence[str], right: Sequence[str]) -> float:
    """Jaccard index of two term collections; 0.0 when both are empty."""
    left_set, right_set = set(left), set(right)
    union = left_set | right_set
    if not union:
        return 0.0
    return len(left_set & right_set) / len(union)


def contains_word(text: str, term: str) -> bool:
    """Return True when ``term`` occurs in ``text`` as a whole word, ignoring case."""
    pattern = rf"\b{re.escape(term)}\b"
    return re.search(pattern, text, re.IGNORECASE) is not None


def compile_alternation(terms: Iterable[str], *, escape: bool = False) -> re.Pattern[str]:
    """Build a case-insensitive whole-word alternation from ``terms``."""
    parts = [re.escape(term) if escape else term for term in terms if term]
    if not parts:
        return re.compile(r"(?!)")
    return re.compile(r"\b(?:" + "|".join(parts) + r")\b", re.IGNORECASE)


__all__ = [
    "compile_alternation",
    "contains_word",
    "extract_topics",
    "jaccard",
    "split_paragraphs",
    "split_sentences",
    "tokenize",
]
