"""Signal alignment: how well claims are backed by citations, data and code."""

from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from ..config import EngineConfig
from ..models import ComponentScore, Document, FactorScore, RepoManifest
from ..text import compile_alternation, split_paragraphs, split_sentences
from .base import ScoringInputs, component, describe, neutral


class SignalScorer:
    name = "signal"

    def __init__(self, config: EngineConfig) -> None:
        self.config = config
        scoring = config.scoring
        self._citation = re.compile(scoring.citation_pattern)
        self._claim = compile_alternation(scoring.claim_terms)

    def score(self, inputs: ScoringInputs) -> ComponentScore:
        citation, density = self.citation_factor(inputs.documents)
        claims, unsupported = self.claims_factor(inputs.documents)
        data = self.data_factor(inputs.manifest)
        code = self.code_factor(inputs.manifest)

        details = [
            describe("Citation network density", citation, f"{density:.2f}"),
            describe("Unsupported claims", claims, str(unsupported)),
            describe("Data integrity score", data, f"{data.value:.2f}"),
            describe("Code-result consistency", code, f"{code.value:.2f}"),
        ]
        factors = [citation, claims, data, code]
        return component(self.name, factors, self.config.scoring.signal_weights, details)

    def citation_factor(self, documents: Sequence[Document]) -> Tuple[FactorScore, float]:
        paragraphs = sum(len(split_paragraphs(document.body)) for document in documents)
        if paragraphs == 0:
            return neutral(self.config, "citation", "no paragraphs to measure"), 0.0
        citations = sum(len(self._citation.findall(document.body)) for document in documents)
        density = citations / paragraphs
        target = self.config.scoring.target_citation_density
        return FactorScore.computed("citation", min(1.0, density / target)), density

    def claims_factor(self, documents: Sequence[Document]) -> Tuple[FactorScore, int]:
        total = 0
        unsupported = 0
        for document in documents:
            sentences = split_sentences(document.body)
            for index, sentence in enumerate(sentences):
                if not self._claim.search(sentence):
                    continue
                total += 1
                following = sentences[index + 1] if index + 1 < len(sentences) else ""
                if not (self._citation.search(sentence) or self._citation.search(following)):
                    unsupported += 1

        rate = unsupported / total if total else 0.0
        penalty = self.config.scoring.unsupported_penalty
        value = 1.0 - min(1.0, penalty * rate)
        note = None if total else "no claims found"
        return FactorScore.computed("claims", value, note=note), unsupported

    def data_factor(self, manifest: RepoManifest) -> FactorScore:
        paths = self.config.paths
        data_files = manifest.paths_under(paths.data)
        has_readme = manifest.has_file(f"{paths.data.strip('/')}/README.md")
        scripts = self._code_scripts(manifest)
        value = (
            0.5
            + (0.2 if data_files else 0.0)
            + (0.2 if has_readme else 0.0)
            + (0.1 if scripts else 0.0)
        )
        return FactorScore.computed("data", min(1.0, value))

    def code_factor(self, manifest: RepoManifest) -> FactorScore:
        scripts = self._code_scripts(manifest)
        results = manifest.paths_under(self.config.paths.content, self.config.scoring.result_suffixes)
        value = 0.5 + (0.25 if scripts else 0.0) + (0.25 if results else 0.0)
        return FactorScore.computed("code", min(1.0, value))

    def _code_scripts(self, manifest: RepoManifest) -> List[str]:
        return manifest.paths_under(self.config.paths.code, self.config.scoring.code_suffixes)


__all__ = ["SignalScorer"]
