"""Module discovery over a project's source directories."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Sequence, Tuple

from .analyzers import collect_metrics, extract_exports
from .ecosystems import detect_ecosystem, get_profile, matches_ignore, merge_ignore
from .logging import get_logger
from .models import EcosystemProfile, ModuleRecord

MAX_SCAN_DEPTH = 4
# Root-level fallback candidates need more than this many source files.
FALLBACK_MIN_FILES = 2

_LOGGER = get_logger("module_scanner")


def _sorted_subdirs(directory: Path) -> List[Path]:
    subdirs: List[Path] = []
    with os.scandir(directory) as iterator:
        for entry in iterator:
            try:
                if entry.is_dir():
                    subdirs.append(Path(entry.path))
            except OSError:
                continue
    return sorted(subdirs, key=lambda path: path.name)


def _relative(root: Path, path: Path) -> str:
    return path.relative_to(root).as_posix()


def build_candidate(
    directory: Path,
    relative_path: str,
    ecosystem: str,
    ignore_dirs: Sequence[str],
) -> ModuleRecord | None:
    """Measure ``directory`` and return its module record, or None when it does not qualify."""
    if matches_ignore(directory.name, ignore_dirs):
        return None

    metrics = collect_metrics(directory)
    if metrics.file_count < 1 and metrics.sub_dir_count < 1:
        return None

    return ModuleRecord(
        name=directory.name,
        relative_path=relative_path,
        metrics=metrics,
        exports=extract_exports(directory, ecosystem),
    )


class ModuleScanner:
    """Walks configured source roots and collects module candidates."""

    def __init__(self, extra_ignore: Sequence[str] = ()) -> None:
        self._extra_ignore = tuple(extra_ignore)

    def ignore_dirs(self, profile: EcosystemProfile) -> Tuple[str, ...]:
        return merge_ignore(profile, self._extra_ignore)

    def scan_tree(
        self,
        root: Path,
        start: Path,
        ecosystem: str,
        depth: int = 0,
    ) -> List[ModuleRecord]:
        """Return candidates below ``start`` in pre-order, descending at most ``MAX_SCAN_DEPTH`` levels.

        A directory can be a module and the parent of further modules, so descent
        continues whether or not a candidate was produced. Ignored directories are
        neither measured nor entered.
        """
        ignore_dirs = self.ignore_dirs(get_profile(ecosystem))
        modules: List[ModuleRecord] = []
        if depth > MAX_SCAN_DEPTH:
            return modules

        # Each stack item is a directory to measure plus the depth its parent
        # was listed at. Children are pushed in reverse so siblings pop in
        # listing order and every subtree finishes before the next sibling.
        stack: List[Tuple[Path, int]] = list(
            reversed(self._listing(start, depth, ignore_dirs))
        )
        while stack:
            directory, level = stack.pop()
            candidate = build_candidate(
                directory, _relative(root, directory), ecosystem, ignore_dirs
            )
            if candidate is not None and candidate.metrics.file_count > 0:
                modules.append(candidate)
            if level + 1 <= MAX_SCAN_DEPTH:
                stack.extend(reversed(self._listing(directory, level + 1, ignore_dirs)))

        return modules

    @staticmethod
    def _listing(
        directory: Path, level: int, ignore_dirs: Sequence[str]
    ) -> List[Tuple[Path, int]]:
        try:
            subdirs = _sorted_subdirs(directory)
        except OSError as exc:
            _LOGGER.debug("Skipping unreadable directory %s: %s", directory, exc)
            return []
        return [
            (subdir, level)
            for subdir in subdirs
            if not matches_ignore(subdir.name, ignore_dirs)
        ]

    def discover(self, root: str | os.PathLike[str], ecosystem: str | None = None) -> List[ModuleRecord]:
        """Return module candidates for the project at ``root`` in discovery order.

        Each configured source directory is scanned independently. When none of
        them yields a module, immediate subdirectories of the root are measured
        instead and only kept with more than ``FALLBACK_MIN_FILES`` source files.
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        ecosystem = ecosystem or detect_ecosystem(root_path)
        profile = get_profile(ecosystem)

        modules: List[ModuleRecord] = []
        for source_dir in profile.source_dirs:
            candidate_root = root_path / source_dir
            if candidate_root.is_dir():
                modules.extend(self.scan_tree(root_path, candidate_root, ecosystem))
        _LOGGER.debug(
            "Source directory scan of %s (%s) found %d modules", root_path, ecosystem, len(modules)
        )
        if modules:
            return modules

        ignore_dirs = self.ignore_dirs(profile)
        for subdir, _ in self._listing(root_path, 0, ignore_dirs):
            candidate = build_candidate(subdir, subdir.name, ecosystem, ignore_dirs)
            if candidate is not None and candidate.metrics.file_count > FALLBACK_MIN_FILES:
                modules.append(candidate)
        _LOGGER.debug("Root fallback scan found %d modules", len(modules))
        return modules


def discover_modules(
    root: str | os.PathLike[str], *, extra_ignore: Sequence[str] = ()
) -> List[ModuleRecord]:
    """Detect the ecosystem of ``root`` and return its unscored module records."""
    return ModuleScanner(extra_ignore).discover(root)


__all__ = [
    "FALLBACK_MIN_FILES",
    "MAX_SCAN_DEPTH",
    "ModuleScanner",
    "build_candidate",
    "discover_modules",
]
