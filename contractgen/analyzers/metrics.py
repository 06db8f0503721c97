"""Directory complexity collection for candidate modules."""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Tuple

from ..logging import get_logger
from ..models import DirectoryMetrics

MAX_METRICS_DEPTH = 3

SOURCE_EXTENSIONS = frozenset({".js", ".ts", ".jsx", ".tsx", ".py", ".go", ".rs", ".java"})
ENTRY_POINT_FILES = frozenset({"index.js", "index.ts", "main.js", "main.ts", "__init__.py", "main.go"})
TEST_MARKERS = (".test.", ".spec.", "_test.")

_LOGGER = get_logger("analyzers.metrics")


def count_lines(path: Path) -> int:
    """Return the newline-delimited line count, or 0 when the file is unreadable."""
    try:
        data = path.read_bytes()
    except OSError:
        return 0
    return data.count(b"\n") + 1


def is_test_file(name: str) -> bool:
    return any(marker in name for marker in TEST_MARKERS)


def _sorted_entries(directory: Path) -> List[os.DirEntry[str]]:
    with os.scandir(directory) as iterator:
        return sorted(iterator, key=lambda entry: entry.name)


def collect_metrics(directory: Path, max_depth: int = MAX_METRICS_DEPTH) -> DirectoryMetrics:
    """Measure ``directory`` with a depth-bounded walk.

    Every visited directory is listed in full; the bound only stops descent
    below ``max_depth``. ``sub_dir_count`` counts the immediate children of
    ``directory``; file and line counts, ``max_depth`` and the entry/test flags
    aggregate over the whole walk. Unreadable directories count as empty.
    """
    metrics = DirectoryMetrics()
    stack: List[Tuple[Path, int]] = [(Path(directory), 0)]

    while stack:
        current, depth = stack.pop()
        metrics.max_depth = max(metrics.max_depth, depth)
        try:
            entries = _sorted_entries(current)
        except OSError as exc:
            _LOGGER.debug("Skipping unreadable directory %s: %s", current, exc)
            continue

        children: List[Tuple[Path, int]] = []
        for entry in entries:
            try:
                is_dir = entry.is_dir()
                is_file = not is_dir and entry.is_file()
            except OSError:
                continue
            if is_dir:
                if depth == 0:
                    metrics.sub_dir_count += 1
                if depth < max_depth:
                    children.append((Path(entry.path), depth + 1))
                continue
            if not is_file:
                continue

            name = entry.name
            if os.path.splitext(name)[1] in SOURCE_EXTENSIONS:
                metrics.file_count += 1
                metrics.line_count += count_lines(Path(entry.path))
            if name in ENTRY_POINT_FILES:
                metrics.has_entry_point = True
            if is_test_file(name):
                metrics.has_tests = True

        stack.extend(reversed(children))

    return metrics


__all__ = [
    "ENTRY_POINT_FILES",
    "MAX_METRICS_DEPTH",
    "SOURCE_EXTENSIONS",
    "collect_metrics",
    "count_lines",
    "is_test_file",
]
