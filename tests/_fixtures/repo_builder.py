"""Helper utilities for constructing temporary projects in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import List, Mapping

from contractgen.models import ModuleRecord
from contractgen.module_scanner import ModuleScanner


def lines(count: int) -> str:
    """Return text whose newline-delimited line count is exactly ``count``."""
    return "\n".join(f"x{index} = {index}" for index in range(count))


class RepoBuilder:
    """Utility for writing files into a throwaway project and discovering its modules."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()
        self._scanner = ModuleScanner()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the project."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_raw(self, relative: str, content: str) -> Path:
        """Write ``content`` verbatim, without dedenting."""
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def mkdir(self, relative: str) -> Path:
        path = self.root / relative
        path.mkdir(parents=True, exist_ok=True)
        return path

    def discover(self) -> List[ModuleRecord]:
        """Return the project's module records."""
        return self._scanner.discover(str(self.root))

    def path(self) -> Path:
        """Return the project root path."""
        return self.root


__all__ = ["RepoBuilder", "lines"]
