from __future__ import annotations

import os

import pytest

from contractgen.analyzers.metrics import collect_metrics, count_lines, is_test_file
from tests._fixtures.repo_builder import lines


def test_count_lines_counts_newlines_plus_one(tmp_path) -> None:
    target = tmp_path / "a.py"
    target.write_text("one\ntwo\n", encoding="utf-8")

    assert count_lines(target) == 3
    assert count_lines(tmp_path / "missing.py") == 0


def test_is_test_file_markers() -> None:
    assert is_test_file("auth.test.ts")
    assert is_test_file("auth.spec.js")
    assert is_test_file("auth_test.go")
    assert not is_test_file("test_auth.py")


def test_collect_metrics_aggregates_nested_files(repo_builder) -> None:
    repo_builder.write_raw("mod/index.js", lines(10))
    repo_builder.write_raw("mod/notes.txt", lines(99))
    repo_builder.write_raw("mod/inner/util.ts", lines(5))
    repo_builder.write_raw("mod/inner/util.test.ts", lines(2))
    repo_builder.mkdir("mod/other")

    metrics = collect_metrics(repo_builder.path() / "mod")

    assert metrics.file_count == 3
    assert metrics.line_count == 17
    assert metrics.sub_dir_count == 2
    assert metrics.has_entry_point is True
    assert metrics.has_tests is True
    assert metrics.max_depth == 1


def test_collect_metrics_stops_descending_below_bound(repo_builder) -> None:
    repo_builder.write_raw("mod/a/b/c/shallow.py", lines(1))
    repo_builder.write_raw("mod/a/b/c/d/deep.py", lines(1))

    metrics = collect_metrics(repo_builder.path() / "mod")

    assert metrics.file_count == 1
    assert metrics.max_depth == 3
    assert metrics.sub_dir_count == 1


def test_collect_metrics_on_missing_directory_is_empty(tmp_path) -> None:
    metrics = collect_metrics(tmp_path / "nope")

    assert metrics.file_count == 0
    assert metrics.line_count == 0
    assert metrics.has_entry_point is False


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores directory permissions")
def test_unreadable_subdirectory_counts_as_empty(repo_builder) -> None:
    repo_builder.write_raw("mod/a.py", lines(3))
    repo_builder.write_raw("mod/locked/b.py", lines(40))
    repo_builder.write_raw("mod/locked/b.test.py", lines(2))
    locked = repo_builder.path() / "mod" / "locked"
    locked.chmod(0)
    try:
        metrics = collect_metrics(repo_builder.path() / "mod")
    finally:
        locked.chmod(0o755)

    assert metrics.file_count == 1
    assert metrics.line_count == 3
    assert metrics.sub_dir_count == 1
    assert metrics.has_tests is False


def test_flags_use_fixed_indicator_sets(repo_builder) -> None:
    repo_builder.write_raw("mod/tests/test_auth.py", lines(4))
    repo_builder.write_raw("mod/main.go", lines(2))

    metrics = collect_metrics(repo_builder.path() / "mod")

    assert metrics.has_entry_point is True
    assert metrics.has_tests is False
