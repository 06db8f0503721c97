"""Project-wide ledger of known contract locations (.contracts/registry.yaml)."""

from __future__ import annotations

import os
import re
from dataclasses import asdict
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional

import yaml

from ..config import DEFAULT_REGISTRY_PATH
from ..logging import get_logger
from ..models import ModuleRecord, RegistryEntry
from .files import atomic_write_text

INITIALIZED_BY = "contractgen"

_HEADER = (
    "# .contracts/registry.yaml\n"
    "# Central registry of all contracts in this project\n"
    "# Generated by contractgen\n\n"
)
_NAME_LINE = re.compile(r"""^\s*name:\s*["']?([^"'\n#]+?)["']?\s*$""", re.MULTILINE)
_PATH_ITEM = re.compile(r"""^\s*-\s*path:\s*["']?([^"'\n#]+?)["']?\s*$""", re.MULTILINE)

_LOGGER = get_logger("stores.registry")


class ContractRegistry:
    """Append-only ledger keyed by contract directory path."""

    def __init__(self, path: Path, project_name: str, now: Optional[datetime] = None) -> None:
        self._path = path
        self.project_name = project_name
        self.initialized = (now or datetime.now(UTC)).astimezone(UTC).isoformat().replace(
            "+00:00", "Z"
        )
        self.initialized_by = INITIALIZED_BY
        self._entries: Dict[str, Dict[str, str]] = {}
        self._dirty = False
        self._load(path)

    @property
    def paths(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and path in self._entries

    def add(self, entry: RegistryEntry) -> bool:
        """Record ``entry`` unless its path is already present. Returns True when added."""
        if entry.path in self._entries:
            return False
        data = asdict(entry)
        self._entries[entry.path] = {
            "path": data["path"],
            "name": data["name"],
            "tier": data["tier"],
            "type": data["classification"],
            "summary": data["summary"],
        }
        self._dirty = True
        return True

    def render(self) -> str:
        payload = {
            "project": {
                "name": self.project_name,
                "initialized": self.initialized,
                "initialized_by": self.initialized_by,
            },
            "contracts": [self._complete(entry) for entry in self._entries.values()],
        }
        body = yaml.safe_dump(payload, sort_keys=False, allow_unicode=True, default_flow_style=False)
        return _HEADER + body

    def persist(self, *, force: bool = False) -> bool:
        """Write the whole ledger back when it changed (or when ``force``)."""
        if not self._dirty and not force and self._path.exists():
            return False
        self._path.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_text(self._path, self.render())
        self._dirty = False
        return True

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _complete(entry: Dict[str, str]) -> Dict[str, str]:
        path = entry["path"]
        return {
            "path": path,
            "name": entry.get("name") or PurePosixPath(path).name,
            "tier": entry.get("tier") or "standard",
            "type": entry.get("type") or "feature",
            "summary": entry.get("summary") or "",
        }

    def _load(self, path: Path) -> None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except (OSError, UnicodeDecodeError) as exc:
            _LOGGER.warning("Registry %s unreadable, starting a fresh ledger: %s", path, exc)
            return

        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            _LOGGER.warning("Registry %s is not valid YAML, salvaging known paths: %s", path, exc)
            self._salvage(text)
            return
        if not isinstance(data, dict):
            self._salvage(text)
            return

        project = data.get("project")
        if isinstance(project, dict):
            if isinstance(project.get("name"), str):
                self.project_name = project["name"]
            if isinstance(project.get("initialized"), str):
                self.initialized = project["initialized"]
            if isinstance(project.get("initialized_by"), str):
                self.initialized_by = project["initialized_by"]

        contracts = data.get("contracts")
        if not isinstance(contracts, list):
            return
        for raw in contracts:
            if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
                continue
            if raw["path"] in self._entries:
                continue
            self._entries[raw["path"]] = {
                key: str(raw[key])
                for key in ("path", "name", "tier", "type", "summary")
                if raw.get(key) is not None
            }

    def _salvage(self, text: str) -> None:
        name = _NAME_LINE.search(text)
        if name:
            self.project_name = name.group(1).strip()
        for match in _PATH_ITEM.finditer(text):
            path = match.group(1).strip()
            self._entries.setdefault(path, {"path": path})
        # Salvaged ledgers are always rewritten in canonical form.
        self._dirty = True


def entry_for(module: ModuleRecord) -> RegistryEntry:
    return RegistryEntry(
        path=module.relative_path,
        name=module.name,
        tier=module.tier,
        classification=module.classification,
        summary=getattr(module, "reasoning", "") or "",
    )


def append_registry(
    root: str | os.PathLike[str],
    modules: Iterable[ModuleRecord],
    *,
    registry_path: Path = DEFAULT_REGISTRY_PATH,
    now: Optional[datetime] = None,
) -> List[str]:
    """Append ``modules`` not yet present to the project ledger; returns the added paths."""
    root_path = Path(root).expanduser().resolve()
    registry = ContractRegistry(root_path / registry_path, root_path.name, now=now)
    added = [module.relative_path for module in modules if registry.add(entry_for(module))]
    registry.persist()
    _LOGGER.debug("Registry now lists %d contracts (%d added)", len(registry.paths), len(added))
    return added


__all__ = ["ContractRegistry", "append_registry", "entry_for"]
