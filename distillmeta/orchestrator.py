"""Pipeline orchestration for scoring, attribution, residue and report runs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List

from .attribution import AttributionGraph, AttributionGraphBuilder
from .config import EngineConfig, Thresholds, load_config, validate_config
from .documents import DocumentParser
from .ingest import REVISION_HISTORY, ActivityIngestor
from .logging import get_logger
from .models import COMPONENTS, ActivityLog, CoherenceReport, Document, RepoManifest, utc_now
from .repo_scanner import RepoScanner
from .residue import ResidueCatalog, ResidueClassifier
from .scoring import CoherenceScorer
from .stores import ArtifactStore
from .trends import CoherenceHistory, TrendReporter

PUBLICATION_GATE = "publication"


class FatalInputError(RuntimeError):
    """Raised when a run cannot produce meaningful scores; nothing is written."""


@dataclass
class RunOutcome:
    """Gating verdict of a scoring run."""

    passed: bool
    gate: str
    threshold: float
    overall_score: float
    components: Dict[str, float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "gate": self.gate,
            "threshold": self.threshold,
            "overallScore": self.overall_score,
            "components": dict(self.components),
        }


def evaluate_gate(report: CoherenceReport, thresholds: Thresholds) -> RunOutcome:
    threshold = thresholds.publication
    return RunOutcome(
        passed=report.overall_score >= threshold,
        gate=PUBLICATION_GATE,
        threshold=threshold,
        overall_score=report.overall_score,
        components={name: report.components[name] for name in COMPONENTS},
    )


@dataclass
class RunInputs:
    documents: List[Document]
    activity: ActivityLog
    manifest: RepoManifest


class Orchestrator:
    """Coordinates one analysis run over a repository."""

    def __init__(
        self,
        config: EngineConfig,
        *,
        ingestor: ActivityIngestor | None = None,
        parser: DocumentParser | None = None,
        scanner: RepoScanner | None = None,
        scorer: CoherenceScorer | None = None,
        graph_builder: AttributionGraphBuilder | None = None,
        classifier: ResidueClassifier | None = None,
        reporter: TrendReporter | None = None,
        store: ArtifactStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        validate_config(config)
        self.config = config
        self.clock = clock
        self.ingestor = ingestor or ActivityIngestor(config)
        self.parser = parser or DocumentParser(
            config.root,
            topic_count=config.scoring.topic_count,
            min_topic_length=config.scoring.min_topic_length,
        )
        self.scanner = scanner or RepoScanner(
            content_dir=config.paths.content,
            data_dir=config.paths.data,
            code_dir=config.paths.code,
            meta_dir=config.paths.meta,
            exclude_paths=config.exclude_paths,
        )
        self.scorer = scorer or CoherenceScorer(config, clock=clock)
        self.graph_builder = graph_builder or AttributionGraphBuilder(clock=clock)
        self.classifier = classifier or ResidueClassifier(config, clock=clock)
        self.reporter = reporter or TrendReporter(config, clock=clock)
        self.store = store or ArtifactStore(config.meta_dir)
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_path(cls, path: str, *, offline: bool = False) -> "Orchestrator":
        """Load the repository configuration at ``path`` and build a default pipeline."""
        config = load_config(Path(path))
        if offline:
            config.platform.enabled = False
        return cls(config)

    # ------------------------------------------------------------------
    # Runs

    def run_all(self) -> RunOutcome:
        """Score, attribute, catalog residue and report; every artifact is written together."""
        self.logger.info("Starting full run for %s", self.config.root)
        inputs = self._prepare()
        report = self.scorer.score(inputs.documents, inputs.activity, inputs.manifest)

        history = self._load_history()
        history.append(report, self.clock())
        graph = self._load_graph()
        self.graph_builder.update(graph, inputs.activity.events)
        catalog = self._load_catalog()
        self.classifier.update(catalog, inputs.documents, inputs.activity)
        period = self.reporter.build(history, inputs.activity, graph, catalog)

        paths = self.config.paths
        self.store.write_all(
            {
                paths.coherence: report.to_dict(),
                paths.history: history.to_dict(),
                paths.attribution: graph.to_dict(),
                paths.residue: catalog.to_dict(),
                paths.report: period,
            }
        )
        return self._finish(report)

    def run_score(self) -> RunOutcome:
        """Score the repository and append the snapshot to the history."""
        inputs = self._prepare()
        report = self.scorer.score(inputs.documents, inputs.activity, inputs.manifest)
        history = self._load_history()
        history.append(report, self.clock())
        paths = self.config.paths
        self.store.write_all({paths.coherence: report.to_dict(), paths.history: history.to_dict()})
        return self._finish(report)

    def run_attribution(self) -> AttributionGraph:
        activity = self._collect_activity()
        graph = self._load_graph()
        self.graph_builder.update(graph, activity.events)
        self.store.write_all({self.config.paths.attribution: graph.to_dict()})
        return graph

    def run_residue(self) -> ResidueCatalog:
        documents = self._load_documents()
        activity = self._collect_activity()
        catalog = self._load_catalog()
        self.classifier.update(catalog, documents, activity)
        self.store.write_all({self.config.paths.residue: catalog.to_dict()})
        return catalog

    def run_report(self) -> Dict[str, Any]:
        """Rebuild the period report from the persisted history, graph and catalog."""
        activity = self._collect_activity()
        history = self._load_history()
        if not history.entries:
            raise FatalInputError("No coherence history found; run a scoring pass first")
        period = self.reporter.build(history, activity, self._load_graph(), self._load_catalog())
        self.store.write_all({self.config.paths.report: period})
        return period

    # ------------------------------------------------------------------
    # Internal helpers

    def _prepare(self) -> RunInputs:
        documents = self._load_documents()
        activity = self._collect_activity()
        manifest = self.scanner.scan(str(self.config.root))
        self.logger.debug("Scanner discovered %d files", len(manifest.files))
        return RunInputs(documents=documents, activity=activity, manifest=manifest)

    def _load_documents(self) -> List[Document]:
        documents = self.parser.load(self.config.content_dir)
        if not documents:
            raise FatalInputError(f"No documents found under {self.config.content_dir}")
        self.logger.info("Loaded %d document(s)", len(documents))
        return documents

    def _collect_activity(self) -> ActivityLog:
        activity = self.ingestor.collect()
        if not activity.is_available(REVISION_HISTORY):
            raise FatalInputError(
                f"Revision history unreadable: {activity.unavailable_reason(REVISION_HISTORY)}"
            )
        return activity

    def _load_history(self) -> CoherenceHistory:
        return self.store.load(
            self.config.paths.history,
            CoherenceHistory.from_dict,
            lambda: CoherenceHistory.baseline(self.config.repository_label, self.clock()),
        )

    def _load_graph(self) -> AttributionGraph:
        return self.store.load(
            self.config.paths.attribution,
            AttributionGraph.from_dict,
            lambda: AttributionGraph.baseline(self.config.repository_label, self.clock()),
        )

    def _load_catalog(self) -> ResidueCatalog:
        return self.store.load(
            self.config.paths.residue,
            ResidueCatalog.from_dict,
            lambda: ResidueCatalog.baseline(self.config.repository_label, self.clock()),
        )

    def _finish(self, report: CoherenceReport) -> RunOutcome:
        outcome = evaluate_gate(report, self.config.thresholds)
        if outcome.passed:
            self.logger.info(
                "Overall coherence %.3f meets the %s threshold %.2f",
                outcome.overall_score,
                outcome.gate,
                outcome.threshold,
            )
        else:
            self.logger.warning(
                "Overall coherence %.3f is below the %s threshold %.2f",
                outcome.overall_score,
                outcome.gate,
                outcome.threshold,
            )
        for name, value in outcome.components.items():
            if value < self.config.thresholds.for_component(name):
                self.logger.warning("%s component %.3f is below its minimum", name, value)
        return outcome


__all__ = [
    "FatalInputError",
    "Orchestrator",
    "PUBLICATION_GATE",
    "RunOutcome",
    "evaluate_gate",
]
