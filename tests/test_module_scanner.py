from __future__ import annotations

import pytest

from contractgen.module_scanner import ModuleScanner, build_candidate, discover_modules
from tests._fixtures.repo_builder import lines


def _write_auth_module(repo_builder) -> None:
    repo_builder.write({"pyproject.toml": '[project]\nname = "svc"\n'})
    repo_builder.write_raw(
        "src/core/auth/__init__.py",
        '__all__ = ["login", "logout", "verify"]\n' + lines(99),
    )
    repo_builder.write_raw("src/core/auth/session.py", lines(100))
    repo_builder.write_raw("src/core/auth/helpers/session_test.py", lines(20))


def test_discovers_modules_in_preorder(repo_builder) -> None:
    _write_auth_module(repo_builder)

    modules = repo_builder.discover()

    assert [module.relative_path for module in modules] == [
        "src/core",
        "src/core/auth",
        "src/core/auth/helpers",
    ]
    auth = modules[1]
    assert auth.name == "auth"
    assert auth.metrics.file_count == 3
    assert auth.metrics.line_count == 220
    assert auth.metrics.sub_dir_count == 1
    assert auth.has_entry_point and auth.has_tests
    assert auth.exports == ["login", "logout", "verify"]
    assert auth.classification == "core"
    assert auth.tier == "standard"
    assert auth.score is None


def test_ignored_directories_are_not_entered(repo_builder) -> None:
    repo_builder.write({"pyproject.toml": ""})
    repo_builder.write_raw("src/api/routes.py", lines(3))
    repo_builder.write_raw("src/__pycache__/routes.py", lines(3))
    repo_builder.write_raw("src/svc.egg-info/meta.py", lines(3))

    paths = [module.relative_path for module in repo_builder.discover()]

    assert paths == ["src/api"]


def test_configured_extra_ignore_applies(repo_builder) -> None:
    repo_builder.write({"pyproject.toml": ""})
    repo_builder.write_raw("src/api/routes.py", lines(3))
    repo_builder.write_raw("src/generated/models.py", lines(3))

    modules = discover_modules(repo_builder.path(), extra_ignore=["generated"])

    assert [module.relative_path for module in modules] == ["src/api"]


def test_scan_depth_is_bounded(repo_builder) -> None:
    repo_builder.write({"pyproject.toml": ""})
    chain = "src"
    for part in "abcdef":
        chain = f"{chain}/{part}"
        repo_builder.write_raw(f"{chain}/mod.py", lines(2))

    paths = [module.relative_path for module in repo_builder.discover()]

    assert paths == [
        "src/a",
        "src/a/b",
        "src/a/b/c",
        "src/a/b/c/d",
        "src/a/b/c/d/e",
    ]


def test_directories_without_source_files_are_skipped(repo_builder) -> None:
    repo_builder.write({"package.json": "{}", "src/assets/logo.svg": "<svg/>"})
    repo_builder.write_raw("src/cart/index.js", "export const add = 1;\n")

    modules = repo_builder.discover()

    assert [module.relative_path for module in modules] == ["src/cart"]
    assert modules[0].exports == ["add"]


def test_root_fallback_requires_more_than_two_files(repo_builder) -> None:
    for name in ("a.py", "b.py", "c.py"):
        repo_builder.write_raw(f"scripts/{name}", lines(5))
    for name in ("a.py", "b.py"):
        repo_builder.write_raw(f"docs/{name}", lines(5))
    repo_builder.write_raw(".git/hooks/x.py", lines(5))
    repo_builder.write_raw(".git/hooks/y.py", lines(5))
    repo_builder.write_raw(".git/hooks/z.py", lines(5))

    modules = repo_builder.discover()

    assert [module.relative_path for module in modules] == ["scripts"]


def test_missing_root_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        ModuleScanner().discover(tmp_path / "absent")


def test_file_root_raises(tmp_path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    with pytest.raises(NotADirectoryError):
        ModuleScanner().discover(target)


def test_build_candidate_rejects_empty_and_ignored(repo_builder) -> None:
    empty = repo_builder.mkdir("empty")
    ignored = repo_builder.mkdir("node_modules/pkg")

    assert build_candidate(empty, "empty", "generic", ()) is None
    assert build_candidate(ignored.parent, "node_modules", "generic", ("node_modules",)) is None
