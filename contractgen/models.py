"""Core data models shared across contractgen components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

PRIMARY_FILENAME = "CONTRACT.md"
MIRROR_FILENAME = "CONTRACT.yaml"
CONTRACT_FILENAMES = (PRIMARY_FILENAME, MIRROR_FILENAME)

MAX_EXPORTS = 10

CLASSIFICATION_CORE = "core"
CLASSIFICATION_INTEGRATION = "integration"
CLASSIFICATION_UTILITY = "utility"
CLASSIFICATION_FEATURE = "feature"

TIER_CORE = "core"
TIER_STANDARD = "standard"
TIER_COMPLEX = "complex"

_CLASSIFICATION_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("core", "lib", "pkg"), CLASSIFICATION_CORE),
    (("integration", "adapter"), CLASSIFICATION_INTEGRATION),
    (("util", "helper"), CLASSIFICATION_UTILITY),
)


@dataclass(frozen=True)
class EcosystemProfile:
    """Static description of how one kind of project is laid out.

    ``entry_indicators`` and ``test_globs`` describe the ecosystem's conventions
    only. Directory metrics detect entry points and tests with the fixed
    cross-ecosystem sets in ``analyzers.metrics``.
    """

    name: str
    config_files: Tuple[str, ...]
    source_dirs: Tuple[str, ...]
    entry_indicators: Tuple[str, ...]
    test_globs: Tuple[str, ...]
    ignore_dirs: Tuple[str, ...]


@dataclass(frozen=True)
class ProjectProfile:
    """Project identity gathered once per invocation."""

    root: str
    ecosystem: str
    name: str
    description: Optional[str] = None
    readme_excerpt: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DirectoryMetrics:
    """Size and shape measurements for a candidate module directory."""

    file_count: int = 0
    line_count: int = 0
    sub_dir_count: int = 0
    has_entry_point: bool = False
    has_tests: bool = False
    max_depth: int = 0


def classify_path(relative_path: str) -> str:
    """Return the module classification implied by substrings of its path."""
    for needles, classification in _CLASSIFICATION_RULES:
        if any(needle in relative_path for needle in needles):
            return classification
    return CLASSIFICATION_FEATURE


def derive_tier(metrics: DirectoryMetrics) -> str:
    if metrics.line_count < 100 and metrics.sub_dir_count <= 1:
        return TIER_CORE
    if metrics.line_count > 500 or metrics.sub_dir_count > 3:
        return TIER_COMPLEX
    return TIER_STANDARD


@dataclass
class ModuleRecord:
    """A discovered candidate unit of source code.

    ``classification`` and ``tier`` are derived from the path and metrics when
    the record is built and cannot be passed in by callers. ``score`` stays
    ``None`` until the scoring engine attaches it.
    """

    name: str
    relative_path: str
    metrics: DirectoryMetrics
    exports: List[str] = field(default_factory=list)
    classification: str = field(init=False)
    tier: str = field(init=False)
    score: Optional[float] = None

    def __post_init__(self) -> None:
        self.relative_path = self.relative_path.replace("\\", "/")
        self.exports = list(self.exports)[:MAX_EXPORTS]
        self.classification = classify_path(self.relative_path)
        self.tier = derive_tier(self.metrics)

    @property
    def has_entry_point(self) -> bool:
        return self.metrics.has_entry_point

    @property
    def has_tests(self) -> bool:
        return self.metrics.has_tests

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "path": self.relative_path,
            "type": self.classification,
            "tier": self.tier,
            "metrics": asdict(self.metrics),
            "exports": list(self.exports),
            "has_entry_point": self.has_entry_point,
            "has_tests": self.has_tests,
            "score": self.score,
        }


@dataclass
class Recommendation(ModuleRecord):
    """A module promoted above the score threshold, with a justification."""

    reasoning: str = ""

    @classmethod
    def from_module(cls, module: ModuleRecord, reasoning: str) -> "Recommendation":
        return cls(
            name=module.name,
            relative_path=module.relative_path,
            metrics=module.metrics,
            exports=list(module.exports),
            score=module.score,
            reasoning=reasoning,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reasoning"] = self.reasoning
        return data


@dataclass
class RegistryEntry:
    """A row of the project-wide ledger of known contract locations."""

    path: str
    name: str
    tier: str = TIER_STANDARD
    classification: str = CLASSIFICATION_FEATURE
    summary: str = ""


__all__ = [
    "CLASSIFICATION_CORE",
    "CLASSIFICATION_FEATURE",
    "CLASSIFICATION_INTEGRATION",
    "CLASSIFICATION_UTILITY",
    "CONTRACT_FILENAMES",
    "DirectoryMetrics",
    "EcosystemProfile",
    "MAX_EXPORTS",
    "MIRROR_FILENAME",
    "ModuleRecord",
    "PRIMARY_FILENAME",
    "ProjectProfile",
    "Recommendation",
    "RegistryEntry",
    "TIER_COMPLEX",
    "TIER_CORE",
    "TIER_STANDARD",
    "classify_path",
    "derive_tier",
]
