from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import yaml

from contractgen.models import DirectoryMetrics, ModuleRecord, RegistryEntry
from contractgen.stores.registry import ContractRegistry, append_registry

NOW = datetime(2025, 3, 4, 5, 6, 7, tzinfo=UTC)


def _module(path: str, lines: int = 120) -> ModuleRecord:
    return ModuleRecord(
        name=path.rsplit("/", 1)[-1],
        relative_path=path,
        metrics=DirectoryMetrics(file_count=2, line_count=lines),
    )


def _registry_file(root: Path) -> Path:
    return root / ".contracts" / "registry.yaml"


def test_append_creates_ledger(repo_builder) -> None:
    root = repo_builder.path()

    added = append_registry(root, [_module("src/core/auth"), _module("src/cart")], now=NOW)

    assert added == ["src/core/auth", "src/cart"]
    text = _registry_file(root).read_text(encoding="utf-8")
    assert text.startswith("# .contracts/registry.yaml\n")
    data = yaml.safe_load(text)
    assert data["project"] == {
        "name": "repo",
        "initialized": "2025-03-04T05:06:07Z",
        "initialized_by": "contractgen",
    }
    assert data["contracts"][0] == {
        "path": "src/core/auth",
        "name": "auth",
        "tier": "standard",
        "type": "core",
        "summary": "",
    }


def test_append_is_idempotent(repo_builder) -> None:
    root = repo_builder.path()
    append_registry(root, [_module("src/cart")], now=NOW)
    before = _registry_file(root).read_bytes()

    added = append_registry(root, [_module("src/cart")], now=datetime(2030, 1, 1, tzinfo=UTC))

    assert added == []
    assert _registry_file(root).read_bytes() == before


def test_existing_entries_are_preserved_and_extended(repo_builder) -> None:
    root = repo_builder.path()
    append_registry(root, [_module("src/cart")], now=NOW)

    added = append_registry(root, [_module("src/cart"), _module("src/search")], now=NOW)

    assert added == ["src/search"]
    data = yaml.safe_load(_registry_file(root).read_text(encoding="utf-8"))
    assert [row["path"] for row in data["contracts"]] == ["src/cart", "src/search"]


def test_malformed_ledger_is_salvaged(repo_builder) -> None:
    root = repo_builder.path()
    repo_builder.write_raw(
        ".contracts/registry.yaml",
        "project:\n  name: legacy\ncontracts:\n  - path: src/old\n    name: [broken\n",
    )

    added = append_registry(root, [_module("src/new")], now=NOW)

    assert added == ["src/new"]
    data = yaml.safe_load(_registry_file(root).read_text(encoding="utf-8"))
    assert data["project"]["name"] == "legacy"
    assert [row["path"] for row in data["contracts"]] == ["src/old", "src/new"]
    assert data["contracts"][0]["name"] == "old"


def test_registry_add_reports_duplicates(tmp_path) -> None:
    registry = ContractRegistry(tmp_path / "registry.yaml", "demo", now=NOW)

    assert registry.add(RegistryEntry(path="src/a", name="a")) is True
    assert registry.add(RegistryEntry(path="src/a", name="renamed")) is False
    assert "src/a" in registry
    assert registry.paths == ["src/a"]


def test_custom_registry_location(repo_builder) -> None:
    root = repo_builder.path()

    append_registry(root, [_module("src/cart")], registry_path=Path("docs/contracts.yaml"), now=NOW)

    assert (root / "docs" / "contracts.yaml").is_file()
    assert not _registry_file(root).exists()
