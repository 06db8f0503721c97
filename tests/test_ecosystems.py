from __future__ import annotations

import pytest

from contractgen.ecosystems import (
    ECOSYSTEMS,
    GENERIC,
    detect_ecosystem,
    get_profile,
    matches_ignore,
    merge_ignore,
)


@pytest.mark.parametrize(
    ("marker", "expected"),
    [
        ("package.json", "nodejs"),
        ("yarn.lock", "nodejs"),
        ("pyproject.toml", "python"),
        ("requirements.txt", "python"),
        ("go.mod", "go"),
        ("Cargo.toml", "rust"),
    ],
)
def test_detect_ecosystem_from_top_level_marker(repo_builder, marker, expected) -> None:
    repo_builder.write({marker: ""})

    assert detect_ecosystem(repo_builder.path()) == expected


def test_detection_prefers_declared_order(repo_builder) -> None:
    repo_builder.write({"package.json": "{}", "pyproject.toml": "", "go.mod": "module x\n"})

    assert detect_ecosystem(repo_builder.path()) == "nodejs"


def test_nested_markers_are_ignored(repo_builder) -> None:
    repo_builder.write({"tools/package.json": "{}", "README.md": "# hi\n"})

    assert detect_ecosystem(repo_builder.path()) == GENERIC


def test_empty_directory_is_generic(repo_builder) -> None:
    assert detect_ecosystem(repo_builder.path()) == GENERIC


def test_missing_root_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        detect_ecosystem(tmp_path / "absent")


def test_profiles_cover_every_ecosystem() -> None:
    names = tuple(profile.name for profile in ECOSYSTEMS)
    assert names == ("nodejs", "python", "go", "rust", GENERIC)
    assert get_profile("cobol").name == GENERIC
    assert "src" in get_profile("python").source_dirs


def test_matches_ignore_literal_and_glob() -> None:
    patterns = ("node_modules", "*.egg-info")

    assert matches_ignore("node_modules", patterns)
    assert matches_ignore("contractgen.egg-info", patterns)
    assert not matches_ignore("node_modules_extra", patterns)
    assert not matches_ignore("egg-info.bak", patterns)


def test_merge_ignore_appends_unique_extras() -> None:
    profile = get_profile("go")

    merged = merge_ignore(profile, ["vendor", "generated", ""])

    assert merged == ("vendor", "bin", ".git", "generated")
