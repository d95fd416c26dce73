"""Configuration loading for compmigrate (.compmigrate.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".compmigrate.yml"
DEFAULT_MANIFEST_PATH = Path(".compmigrate") / "logs" / "generation-manifest.json"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class AnalyzerSettings:
    """Source analysis tuning."""

    confidence_threshold: float = 0.5


@dataclass
class TransformSettings:
    """Transformation policy knobs."""

    manual_review_complexity: int = 4


@dataclass
class ScoringConfig:
    """Penalty weights used by the migration validator."""

    error_penalty: int = 20
    warning_penalty: int = 5
    not_preserved_penalty: int = 30
    manual_review_penalty: int = 10


@dataclass
class BatchSettings:
    """Batch run behaviour."""

    max_workers: int = 1
    component_timeout: Optional[float] = None
    dry_run: bool = False
    skip_tests: bool = False


@dataclass
class MigrationConfig:
    """Represents the settings defined in .compmigrate.yml."""

    root: Path
    baseline_path: Optional[Path] = None
    output_path: Optional[Path] = None
    manifest_path: Path = DEFAULT_MANIFEST_PATH
    templates_dir: Optional[Path] = None
    log_file: Optional[Path] = None
    analyzer: AnalyzerSettings = field(default_factory=AnalyzerSettings)
    transform: TransformSettings = field(default_factory=TransformSettings)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    batch: BatchSettings = field(default_factory=BatchSettings)


@dataclass(frozen=True)
class GenerationOptions:
    """Options recognised by the code generator for a single component."""

    baseline_path: str
    output_path: str
    component_name: Optional[str] = None
    dry_run: bool = False
    skip_tests: bool = False
    verbose: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "baselinePath": self.baseline_path,
            "outputPath": self.output_path,
            "dryRun": self.dry_run,
            "skipTests": self.skip_tests,
            "verbose": self.verbose,
        }
        if self.component_name:
            data["componentName"] = self.component_name
        return data


def load_config(config_path: Path) -> MigrationConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return MigrationConfig(root=root, manifest_path=root / DEFAULT_MANIFEST_PATH)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    config = MigrationConfig(root=root)

    baseline = _as_str(data.get("baseline_path"))
    if baseline:
        config.baseline_path = root / baseline
    output = _as_str(data.get("output_path"))
    if output:
        config.output_path = root / output
    manifest = _as_str(data.get("manifest_path"))
    if manifest:
        config.manifest_path = root / manifest
    else:
        config.manifest_path = root / DEFAULT_MANIFEST_PATH
    templates = _as_str(data.get("templates_dir"))
    if templates:
        config.templates_dir = root / templates
    log_file = _as_str(data.get("log_file"))
    if log_file:
        config.log_file = root / log_file

    analyzer_data = _as_dict(data.get("analyzer"))
    threshold = _as_float(analyzer_data.get("confidence_threshold"))
    if threshold is not None:
        if not 0.0 <= threshold <= 1.0:
            raise ConfigError("analyzer.confidence_threshold must be between 0 and 1")
        config.analyzer.confidence_threshold = threshold

    transform_data = _as_dict(data.get("transform"))
    review_complexity = _as_int(transform_data.get("manual_review_complexity"))
    if review_complexity is not None:
        config.transform.manual_review_complexity = review_complexity

    scoring_data = _as_dict(data.get("scoring"))
    for name in ("error_penalty", "warning_penalty", "not_preserved_penalty", "manual_review_penalty"):
        value = _as_int(scoring_data.get(name))
        if value is not None:
            if value < 0:
                raise ConfigError(f"scoring.{name} must not be negative")
            setattr(config.scoring, name, value)

    batch_data = _as_dict(data.get("batch"))
    workers = _as_int(batch_data.get("max_workers"))
    if workers is not None:
        if workers < 1:
            raise ConfigError("batch.max_workers must be at least 1")
        config.batch.max_workers = workers
    config.batch.component_timeout = _as_float(batch_data.get("component_timeout"))
    config.batch.dry_run = _as_bool(batch_data.get("dry_run")) or False
    config.batch.skip_tests = _as_bool(batch_data.get("skip_tests")) or False

    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
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
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "AnalyzerSettings",
    "BatchSettings",
    "ConfigError",
    "DEFAULT_MANIFEST_PATH",
    "GenerationOptions",
    "MigrationConfig",
    "ScoringConfig",
    "TransformSettings",
    "load_config",
]
