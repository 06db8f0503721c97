from __future__ import annotations

import json

import pytest

from contractgen.errors import ParseError
from contractgen.project import (
    README_EXCERPT_CHARS,
    build_project_profile,
    read_package_json,
    read_readme,
)


def test_node_profile_reads_package_json(repo_builder) -> None:
    repo_builder.write(
        {"package.json": json.dumps({"name": "shop", "description": "Storefront"})}
    )

    profile = build_project_profile(repo_builder.path(), "nodejs")

    assert profile.name == "shop"
    assert profile.description == "Storefront"
    assert profile.ecosystem == "nodejs"


def test_python_profile_falls_back_to_poetry_table(repo_builder) -> None:
    repo_builder.write(
        {
            "pyproject.toml": """
            [tool.poetry]
            name = "ledger"
            description = "Bookkeeping"
            """
        }
    )

    profile = build_project_profile(repo_builder.path(), "python")

    assert profile.name == "ledger"
    assert profile.description == "Bookkeeping"


def test_go_profile_reads_module_path(repo_builder) -> None:
    repo_builder.write({"go.mod": "module example.com/tool\n\ngo 1.22\n"})

    profile = build_project_profile(repo_builder.path(), "go")

    assert profile.name == "example.com/tool"


def test_malformed_manifest_falls_back_to_directory_name(repo_builder) -> None:
    repo_builder.write({"package.json": "{not json"})

    profile = build_project_profile(repo_builder.path(), "nodejs")

    assert profile.name == repo_builder.path().name
    assert profile.description is None


def test_readme_excerpt_is_truncated(repo_builder) -> None:
    repo_builder.write_raw("README.md", "a" * (README_EXCERPT_CHARS + 50))

    excerpt = read_readme(repo_builder.path())

    assert excerpt is not None
    assert len(excerpt) == README_EXCERPT_CHARS


def test_missing_readme_yields_none(repo_builder) -> None:
    assert read_readme(repo_builder.path()) is None


def test_malformed_package_json_raises_parse_error(repo_builder) -> None:
    repo_builder.write({"package.json": "[1, 2"})

    with pytest.raises(ParseError):
        read_package_json(repo_builder.path())


def test_malformed_pyproject_falls_back_to_key_scan(repo_builder) -> None:
    repo_builder.write_raw(
        "pyproject.toml",
        '[project]\nname = "scanner"\ndescription = "Finds things"\ndependencies = [\n',
    )

    profile = build_project_profile(repo_builder.path(), "python")

    assert profile.name == "scanner"
    assert profile.description == "Finds things"
