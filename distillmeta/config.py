"""Configuration loading for distillmeta (.distill.yml)."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from . import constants
from .models import COMPONENTS


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed or holds invalid values."""


@dataclass
class Thresholds:
    """Per-component minimums plus the two overall gates."""

    signal: float = 0.7
    feedback: float = 0.7
    bounded: float = 0.7
    elastic: float = 0.7
    factor: float = 0.7
    minimum: float = 0.7
    publication: float = 0.85

    def for_component(self, name: str) -> float:
        return float(getattr(self, name))


@dataclass
class Weights:
    """Exponents of the weighted geometric mean."""

    signal: float = 1.0
    feedback: float = 1.0
    bounded: float = 1.0
    elastic: float = 1.0

    def as_dict(self) -> Dict[str, float]:
        return {name: float(getattr(self, name)) for name in COMPONENTS}


@dataclass
class PathsConfig:
    """Repository-relative inputs and meta-directory outputs."""

    content: str = "content"
    meta: str = "meta"
    data: str = "data"
    code: str = "code"
    coherence: str = "coherence.json"
    attribution: str = "attribution.json"
    residue: str = "residue.json"
    history: str = "coherence-history.json"
    report: str = "coherence-report.json"


@dataclass
class ScoringConfig:
    """Tunable constants of the coherence factors."""

    neutral_default: float = 0.5
    citation_pattern: str = constants.CITATION_PATTERN
    target_citation_density: float = 0.5
    claim_terms: List[str] = field(default_factory=lambda: list(constants.CLAIM_TERMS))
    unsupported_penalty: float = 2.0
    feedback_terms: List[str] = field(default_factory=lambda: list(constants.FEEDBACK_TERMS))
    feedback_commit_multiplier: float = 2.5
    cohesion_threshold: float = 0.3
    drift_penalty: float = 0.7
    topic_count: int = 10
    min_topic_length: int = 4
    code_suffixes: List[str] = field(default_factory=lambda: list(constants.CODE_SUFFIXES))
    result_suffixes: List[str] = field(default_factory=lambda: list(constants.RESULT_SUFFIXES))
    signal_weights: Dict[str, float] = field(default_factory=lambda: dict(constants.SIGNAL_WEIGHTS))
    feedback_weights: Dict[str, float] = field(
        default_factory=lambda: dict(constants.FEEDBACK_WEIGHTS)
    )
    bounded_weights: Dict[str, float] = field(default_factory=lambda: dict(constants.BOUNDED_WEIGHTS))
    elastic_weights: Dict[str, float] = field(default_factory=lambda: dict(constants.ELASTIC_WEIGHTS))
    placeholders: Dict[str, float] = field(
        default_factory=lambda: dict(constants.PLACEHOLDER_SCORES)
    )
    trend_epsilon: float = 0.05


@dataclass
class ResidueConfig:
    """Residue detection lexicons and catalog settings."""

    marker: str = constants.RESIDUE_MARKER
    comment_phrases: List[str] = field(
        default_factory=lambda: list(constants.RESIDUE_COMMENT_PHRASES)
    )
    issue_label: str = constants.RESIDUE_ISSUE_LABEL
    issue_title_tag: str = constants.RESIDUE_ISSUE_TITLE_TAG
    recent_days: int = 30
    keywords: Dict[str, List[str]] = field(
        default_factory=lambda: {name: list(words) for name, words in constants.RESIDUE_KEYWORDS.items()}
    )
    deep_markers: List[str] = field(default_factory=lambda: list(constants.DEEP_MARKERS))
    intermediate_markers: List[str] = field(
        default_factory=lambda: list(constants.INTERMEDIATE_MARKERS)
    )
    detection_patterns: Dict[str, str] = field(
        default_factory=lambda: dict(constants.RESIDUE_DETECTION_PATTERNS)
    )
    detection_classes: Dict[str, str] = field(
        default_factory=lambda: dict(constants.RESIDUE_DETECTION_CLASSES)
    )
    backlog_limit: int = constants.RESIDUE_BACKLOG_LIMIT


@dataclass
class PlatformConfig:
    """Hosting platform REST access."""

    enabled: bool = True
    repository: Optional[str] = None
    api_url: str = "https://api.github.com"
    token: Optional[str] = None
    per_page: int = 100
    timeout: float = 30.0
    retries: int = 1
    maintainers: List[str] = field(default_factory=list)

    @property
    def owner(self) -> Optional[str]:
        if not self.repository or "/" not in self.repository:
            return None
        return self.repository.split("/", 1)[0]


@dataclass
class EngineConfig:
    """Explicit configuration value handed to every engine component."""

    root: Path
    thresholds: Thresholds = field(default_factory=Thresholds)
    weights: Weights = field(default_factory=Weights)
    paths: PathsConfig = field(default_factory=PathsConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    residue: ResidueConfig = field(default_factory=ResidueConfig)
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    report_period_days: int = 7
    revision: Optional[str] = None
    exclude_paths: List[str] = field(default_factory=list)

    @property
    def content_dir(self) -> Path:
        return self.root / self.paths.content

    @property
    def meta_dir(self) -> Path:
        return self.root / self.paths.meta

    def output_path(self, artifact: str) -> Path:
        """Return the meta-directory path for ``coherence``, ``attribution``, etc."""
        return self.meta_dir / getattr(self.paths, artifact)

    @property
    def repository_label(self) -> str:
        return self.platform.repository or self.root.name or "local"


def load_config(config_path: Path, *, env: Mapping[str, str] | None = None) -> EngineConfig:
    """Load configuration from disk and apply environment overrides."""
    environ = os.environ if env is None else env
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()
    config = EngineConfig(root=root)

    if config_file.exists():
        data = _read_config(config_file)
        if not isinstance(data, dict):
            raise ConfigError(f"{constants.CONFIG_FILENAME} must contain a mapping at the root")
        _apply_config(config, data)

    _apply_env(config, environ)
    validate_config(config)
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / constants.CONFIG_FILENAME).resolve()
    if config_path.name != constants.CONFIG_FILENAME:
        return (config_path.parent / constants.CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _apply_config(config: EngineConfig, data: Mapping[str, Any]) -> None:
    _apply_section(config.thresholds, _as_dict(data.get("thresholds"), "thresholds"), "thresholds")
    _apply_section(config.weights, _as_dict(data.get("weights"), "weights"), "weights")
    _apply_section(config.paths, _as_dict(data.get("paths"), "paths"), "paths")
    _apply_section(config.scoring, _as_dict(data.get("scoring"), "scoring"), "scoring")
    _apply_section(config.residue, _as_dict(data.get("residue"), "residue"), "residue")
    _apply_section(config.platform, _as_dict(data.get("platform"), "platform"), "platform")

    report_data = _as_dict(data.get("report"), "report")
    if "period_days" in report_data:
        config.report_period_days = _coerce_int(report_data["period_days"], "report.period_days")

    if "exclude_paths" in data:
        config.exclude_paths = _coerce_str_list(data["exclude_paths"], "exclude_paths")


def _apply_section(target: object, data: Mapping[str, Any], section: str) -> None:
    """Overwrite dataclass fields from ``data``, coercing to each field's current type."""
    known = {item.name for item in fields(target)}  # type: ignore[arg-type]
    for key, raw in data.items():
        if key not in known:
            continue
        label = f"{section}.{key}"
        current = getattr(target, key)
        setattr(target, key, _coerce_like(current, raw, label))


def _coerce_like(current: Any, raw: Any, label: str) -> Any:
    if isinstance(current, bool):
        return _coerce_bool(raw, label)
    if isinstance(current, int):
        return _coerce_int(raw, label)
    if isinstance(current, float):
        return _coerce_float(raw, label)
    if isinstance(current, list):
        return _coerce_str_list(raw, label)
    if isinstance(current, dict):
        if not isinstance(raw, Mapping):
            raise ConfigError(f"{label} must be a mapping")
        merged = dict(current)
        for sub_key, sub_value in raw.items():
            sample = current.get(sub_key)
            if sample is None and current:
                sample = next(iter(current.values()))
            merged[str(sub_key)] = _coerce_like(sample, sub_value, f"{label}.{sub_key}")
        return merged
    if raw is None:
        return None
    if isinstance(raw, (str, int, float)):
        return str(raw)
    raise ConfigError(f"{label} must be a scalar value")


def _apply_env(config: EngineConfig, env: Mapping[str, str]) -> None:
    repository = env.get("GITHUB_REPOSITORY")
    if repository and not config.platform.repository:
        config.platform.repository = repository
    token = env.get("GITHUB_TOKEN")
    if token and not config.platform.token:
        config.platform.token = token
    revision = env.get("GITHUB_SHA")
    if revision and not config.revision:
        config.revision = revision
    offline = env.get("DISTILL_OFFLINE")
    if offline is not None and _parse_bool(offline):
        config.platform.enabled = False


def validate_config(config: EngineConfig) -> None:
    """Raise :class:`ConfigError` when ``config`` holds out-of-range values or bad patterns."""
    for item in fields(config.thresholds):
        value = getattr(config.thresholds, item.name)
        if not 0.0 <= value <= 1.0:
            raise ConfigError(f"thresholds.{item.name} must be between 0 and 1")
    if config.thresholds.publication < config.thresholds.minimum:
        raise ConfigError("thresholds.publication must not be lower than thresholds.minimum")
    weights = config.weights.as_dict()
    if any(value < 0 for value in weights.values()):
        raise ConfigError("weights must be non-negative")
    if sum(weights.values()) <= 0:
        raise ConfigError("weights must have a positive sum")
    if config.report_period_days <= 0:
        raise ConfigError("report.period_days must be positive")
    if config.scoring.target_citation_density <= 0:
        raise ConfigError("scoring.target_citation_density must be positive")
    if config.platform.per_page <= 0:
        raise ConfigError("platform.per_page must be positive")
    if config.platform.retries < 0:
        raise ConfigError("platform.retries must not be negative")
    missing = [name for name in constants.RESIDUE_TAXONOMY if name not in config.residue.keywords]
    if missing:
        raise ConfigError(f"residue.keywords is missing taxonomy classes: {', '.join(missing)}")
    if config.residue.backlog_limit < 0:
        raise ConfigError("residue.backlog_limit must not be negative")
    _check_pattern(config.scoring.citation_pattern, "scoring.citation_pattern")
    for term in config.scoring.claim_terms:
        _check_pattern(term, "scoring.claim_terms")
    for name, pattern in config.residue.detection_patterns.items():
        _check_pattern(pattern, f"residue.detection_patterns.{name}")
        classification = config.residue.detection_classes.get(name)
        if classification not in constants.RESIDUE_TAXONOMY:
            raise ConfigError(f"residue.detection_classes.{name} must name a taxonomy class, got {classification!r}")


def _check_pattern(pattern: str, label: str) -> None:
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"{label} contains an invalid pattern {pattern!r}: {exc}") from exc


def _as_dict(value: Any, label: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{label} must be a mapping")
    return value


def _coerce_float(value: Any, label: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    raise ConfigError(f"{label} must be a number")


def _coerce_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{label} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
    raise ConfigError(f"{label} must be an integer")


def _coerce_bool(value: Any, label: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        parsed = _parse_bool(value)
        if parsed is not None:
            return parsed
    raise ConfigError(f"{label} must be a boolean")


def _parse_bool(value: str) -> Optional[bool]:
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return None


def _coerce_str_list(value: Any, label: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    raise ConfigError(f"{label} must be a list")


__all__ = [
    "ConfigError",
    "EngineConfig",
    "PathsConfig",
    "PlatformConfig",
    "ResidueConfig",
    "ScoringConfig",
    "Thresholds",
    "Weights",
    "load_config",
    "validate_config",
]
