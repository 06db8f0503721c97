from __future__ import annotations

import pytest

from contractgen.config import ScoringConfig
from contractgen.models import DirectoryMetrics, ModuleRecord
from contractgen.scoring import (
    GENERIC_REASONING,
    calculate_score,
    generate_reasoning,
    rank_modules,
    score_and_recommend,
)


def _module(path: str, *, lines: int = 0, subdirs: int = 0, entry: bool = False,
            tests: bool = False, exports=()) -> ModuleRecord:
    metrics = DirectoryMetrics(
        file_count=max(1, lines // 50),
        line_count=lines,
        sub_dir_count=subdirs,
        has_entry_point=entry,
        has_tests=tests,
    )
    return ModuleRecord(
        name=path.rsplit("/", 1)[-1],
        relative_path=path,
        metrics=metrics,
        exports=list(exports),
    )


def test_core_auth_module_scores_and_reasons() -> None:
    auth = _module(
        "src/core/auth",
        lines=220,
        subdirs=1,
        entry=True,
        tests=True,
        exports=["login", "logout", "verify"],
    )

    assert calculate_score(auth) == pytest.approx(73.0)
    assert generate_reasoning(auth) == (
        "significant codebase, test coverage exists, core functionality"
    )


def test_line_contribution_is_capped() -> None:
    huge = _module("src/feature", lines=10_000)

    assert calculate_score(huge) == pytest.approx(50.0)


def test_small_module_gets_generic_reasoning_and_is_not_recommended() -> None:
    tiny = _module("src/widgets", lines=40)

    assert calculate_score(tiny) == pytest.approx(4.0)
    assert generate_reasoning(tiny) == GENERIC_REASONING
    assert score_and_recommend([tiny]) == []


def test_threshold_is_strict() -> None:
    edge = _module("src/feature", lines=150)

    assert calculate_score(edge) == pytest.approx(15.0)
    assert score_and_recommend([edge]) == []


def test_reasoning_lists_every_applicable_phrase() -> None:
    module = _module(
        "lib/engine",
        lines=900,
        subdirs=4,
        tests=True,
        exports=["a", "b", "c", "d", "e", "f"],
    )

    assert generate_reasoning(module) == (
        "significant codebase, public API surface, test coverage exists, "
        "core functionality, complex structure"
    )


def test_ranking_is_stable_for_ties() -> None:
    first = _module("src/alpha", lines=300)
    second = _module("src/beta", lines=300)
    top = _module("src/gamma", lines=400)

    ranked = rank_modules([first, second, top])

    assert [module.name for module in ranked] == ["gamma", "alpha", "beta"]
    assert all(module.score is not None for module in ranked)


def test_recommendations_are_capped_at_ten() -> None:
    modules = [_module(f"src/m{index:02d}", lines=200 + index) for index in range(12)]

    recommendations = score_and_recommend(modules)

    assert len(recommendations) == 10
    assert recommendations[0].name == "m11"
    assert recommendations[0].reasoning == "significant codebase"
    assert recommendations[-1].name == "m02"


def test_custom_scoring_weights() -> None:
    scoring = ScoringConfig(core_bonus=0.0, threshold=1.0)
    module = _module("src/core/db", lines=20)

    assert calculate_score(module, scoring) == pytest.approx(2.0)
    assert [rec.name for rec in score_and_recommend([module], scoring)] == ["db"]


def test_recommendation_serialises_reasoning() -> None:
    module = _module("src/core/auth", lines=220, entry=True)

    (recommendation,) = score_and_recommend([module])
    data = recommendation.to_dict()

    assert data["path"] == "src/core/auth"
    assert data["type"] == "core"
    assert data["score"] == pytest.approx(calculate_score(module))
    assert data["reasoning"] == "significant codebase, core functionality"
