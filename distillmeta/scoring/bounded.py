"""Bounded integrity: does the content stay inside its declared scope."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

from ..config import EngineConfig
from ..constants import SCOPE_STOPWORDS
from ..documents import front_matter_list, main_document, main_topics
from ..models import ComponentScore, Document, FactorScore
from ..text import contains_word, jaccard, split_paragraphs, split_sentences, tokenize
from .base import ScoringInputs, component, describe, neutral, placeholder

_INTRO_PARAGRAPHS = 3


def scope_terms(documents: Sequence[Document]) -> List[str]:
    """Declared scope and tags; otherwise terms drawn from the main document's opening."""
    declared: List[str] = []
    for document in documents:
        declared.extend(front_matter_list(document, "scope"))
        declared.extend(front_matter_list(document, "tags"))
    if declared:
        return _unique(term.strip().lower() for term in declared if term.strip())

    main = main_document(documents)
    if main is None:
        return []
    terms: List[str] = [word for word in tokenize(main.title or "") if len(word) > 3]
    intro = " ".join(split_paragraphs(main.body)[:_INTRO_PARAGRAPHS])
    sentences = split_sentences(intro)
    if sentences:
        for sentence in (sentences[0], sentences[-1]):
            terms.extend(
                word for word in tokenize(sentence) if len(word) > 3 and word not in SCOPE_STOPWORDS
            )
    return _unique(terms)


def _unique(terms: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for term in terms:
        if term not in seen:
            seen.append(term)
    return seen


class BoundedScorer:
    name = "bounded"

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    def score(self, inputs: ScoringInputs) -> ComponentScore:
        scope, coverage = self.scope_factor(inputs.documents)
        drift, drift_rate = self.drift_factor(inputs.documents)
        terms = placeholder(self.config, "terms")
        method = placeholder(self.config, "method")

        details = [
            describe("Scope coverage", scope, f"{coverage:.2f}"),
            describe("Topic drift", drift, f"{drift_rate:.2f}"),
            f"Term consistency: {terms.value:.2f} (placeholder)",
            f"Methodological boundaries: {method.value:.2f} (placeholder)",
        ]
        factors = [scope, drift, terms, method]
        return component(self.name, factors, self.config.scoring.bounded_weights, details)

    def scope_factor(self, documents: Sequence[Document]) -> Tuple[FactorScore, float]:
        terms = scope_terms(documents)
        if not terms:
            return neutral(self.config, "scope", "no scope terms declared or derivable"), 0.0
        full_text = "\n".join(document.body for document in documents)
        matched = sum(1 for term in terms if contains_word(full_text, term))
        coverage = matched / len(terms)
        return FactorScore.computed("scope", coverage), coverage

    def drift_factor(self, documents: Sequence[Document]) -> Tuple[FactorScore, float]:
        if not documents:
            return neutral(self.config, "drift", "no documents"), 0.0
        scoring = self.config.scoring
        total = 0
        cohesive = 0
        for document in documents:
            topics = main_topics(document, limit=scoring.topic_count, min_length=scoring.min_topic_length)
            for section in document.sections:
                total += 1
                if jaccard(topics, section.extracted_topics) >= scoring.cohesion_threshold:
                    cohesive += 1
        if total == 0:
            return neutral(self.config, "drift", "no sections"), 0.0
        drift = 1.0 - cohesive / total
        return FactorScore.computed("drift", 1.0 - scoring.drift_penalty * drift), drift


__all__ = ["BoundedScorer", "scope_terms"]
