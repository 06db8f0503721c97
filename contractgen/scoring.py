"""Module importance scoring and recommendation ranking."""

from __future__ import annotations

from typing import Iterable, List

from .config import ScoringConfig
from .models import CLASSIFICATION_CORE, ModuleRecord, Recommendation

DEFAULT_SCORING = ScoringConfig()
GENERIC_REASONING = "moderate complexity module"


def calculate_score(module: ModuleRecord, scoring: ScoringConfig = DEFAULT_SCORING) -> float:
    """Return the importance score of ``module``; depends only on its metrics, exports and classification."""
    metrics = module.metrics
    score = min(metrics.line_count / scoring.line_divisor, scoring.line_cap)
    score += metrics.sub_dir_count * scoring.subdir_weight
    if module.has_entry_point:
        score += scoring.entry_point_bonus
    if module.has_tests:
        score += scoring.tests_bonus
    score += len(module.exports) * scoring.export_weight
    if module.classification == CLASSIFICATION_CORE:
        score += scoring.core_bonus
    return score


def generate_reasoning(module: ModuleRecord) -> str:
    reasons: List[str] = []
    if module.metrics.line_count > 200:
        reasons.append("significant codebase")
    if len(module.exports) > 5:
        reasons.append("public API surface")
    if module.has_tests:
        reasons.append("test coverage exists")
    if module.classification == CLASSIFICATION_CORE:
        reasons.append("core functionality")
    if module.metrics.sub_dir_count > 2:
        reasons.append("complex structure")
    return ", ".join(reasons) if reasons else GENERIC_REASONING


def rank_modules(
    modules: Iterable[ModuleRecord], scoring: ScoringConfig = DEFAULT_SCORING
) -> List[ModuleRecord]:
    """Attach scores and return the modules sorted by descending score.

    The sort is stable, so modules with equal scores keep their discovery order.
    """
    ranked = list(modules)
    for module in ranked:
        module.score = calculate_score(module, scoring)
    ranked.sort(key=lambda module: -(module.score or 0.0))
    return ranked


def recommend(
    ranked: Iterable[ModuleRecord], scoring: ScoringConfig = DEFAULT_SCORING
) -> List[Recommendation]:
    """Promote already-ranked modules above the threshold, capped in count."""
    selected = [
        module for module in ranked if module.score is not None and module.score > scoring.threshold
    ]
    return [
        Recommendation.from_module(module, generate_reasoning(module))
        for module in selected[: max(scoring.max_recommendations, 0)]
    ]


def score_and_recommend(
    modules: Iterable[ModuleRecord], scoring: ScoringConfig = DEFAULT_SCORING
) -> List[Recommendation]:
    """Score every module and return the top recommendations with reasoning."""
    return recommend(rank_modules(modules, scoring), scoring)


__all__ = [
    "DEFAULT_SCORING",
    "GENERIC_REASONING",
    "calculate_score",
    "generate_reasoning",
    "rank_modules",
    "recommend",
    "score_and_recommend",
]
