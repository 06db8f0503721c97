"""Configuration loading for contractgen (.contractgen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".contractgen.yml"
DEFAULT_REGISTRY_PATH = Path(".contracts") / "registry.yaml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and cut-offs of the module importance heuristic.

    The defaults are empirically chosen and kept for compatibility with
    existing recommendation expectations; they are tunable, not invariants.
    """

    line_divisor: float = 10.0
    line_cap: float = 50.0
    subdir_weight: float = 5.0
    entry_point_bonus: float = 10.0
    tests_bonus: float = 10.0
    export_weight: float = 2.0
    core_bonus: float = 20.0
    threshold: float = 15.0
    max_recommendations: int = 10


@dataclass
class ContractGenConfig:
    """Represents the settings defined in .contractgen.yml."""

    root: Path
    exclude_dirs: List[str] = field(default_factory=list)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    registry_path: Path = DEFAULT_REGISTRY_PATH


def load_config(config_path: Path) -> ContractGenConfig:
    """Load configuration from disk, returning defaults when the file is absent."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent.resolve()

    if not config_file.exists():
        return ContractGenConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scoring_data = _as_dict(data.get("scoring"))
    defaults = ScoringConfig()
    scoring = ScoringConfig(
        line_divisor=_positive_float(scoring_data.get("line_divisor"), defaults.line_divisor),
        line_cap=_as_float(scoring_data.get("line_cap"), defaults.line_cap),
        subdir_weight=_as_float(scoring_data.get("subdir"), defaults.subdir_weight),
        entry_point_bonus=_as_float(scoring_data.get("entry_point"), defaults.entry_point_bonus),
        tests_bonus=_as_float(scoring_data.get("tests"), defaults.tests_bonus),
        export_weight=_as_float(scoring_data.get("export"), defaults.export_weight),
        core_bonus=_as_float(scoring_data.get("core_bonus"), defaults.core_bonus),
        threshold=_as_float(scoring_data.get("threshold"), defaults.threshold),
        max_recommendations=_as_int(
            scoring_data.get("max_recommendations"), defaults.max_recommendations
        ),
    )

    registry_str = _as_str(data.get("registry_path"))
    registry_path = Path(registry_str) if registry_str else DEFAULT_REGISTRY_PATH
    if registry_path.is_absolute() or ".." in registry_path.parts:
        raise ConfigError("registry_path must be a relative path inside the project")

    return ContractGenConfig(
        root=root,
        exclude_dirs=_as_str_list(data.get("exclude_dirs")),
        scoring=scoring,
        registry_path=registry_path,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
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


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return default
    return default


def _positive_float(value: Any, default: float) -> float:
    result = _as_float(value, default)
    return result if result > 0 else default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return default
    return default


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []
