"""Ecosystem profiles, project-type detection and ignore-list matching."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, Sequence, Tuple

from .models import EcosystemProfile

GENERIC = "generic"

# Declared order is the detection order.
ECOSYSTEMS: Tuple[EcosystemProfile, ...] = (
    EcosystemProfile(
        name="nodejs",
        config_files=("package.json", "package-lock.json", "yarn.lock", "pnpm-lock.yaml"),
        source_dirs=("src", "lib", "app", "pages", "api", "server", "client"),
        entry_indicators=("index.js", "index.ts", "index.jsx", "index.tsx", "main.js"),
        test_globs=("*.test.js", "*.test.ts", "*.spec.js", "*.spec.ts"),
        ignore_dirs=("node_modules", "dist", "build", ".git", "coverage", ".next", ".nuxt"),
    ),
    EcosystemProfile(
        name="python",
        config_files=("pyproject.toml", "setup.py", "setup.cfg", "requirements.txt", "Pipfile"),
        source_dirs=("src", "app", "api", "core", "utils", "lib", "modules", "packages"),
        entry_indicators=("__init__.py",),
        test_globs=("test_*.py", "*_test.py"),
        ignore_dirs=(
            "__pycache__",
            ".venv",
            "venv",
            "env",
            "dist",
            "build",
            ".git",
            ".pytest_cache",
            "*.egg-info",
        ),
    ),
    EcosystemProfile(
        name="go",
        config_files=("go.mod", "go.sum"),
        source_dirs=("cmd", "internal", "pkg", "api", "web", "services"),
        entry_indicators=("main.go",),
        test_globs=("*_test.go",),
        ignore_dirs=("vendor", "bin", ".git"),
    ),
    EcosystemProfile(
        name="rust",
        config_files=("Cargo.toml", "Cargo.lock"),
        source_dirs=("src", "crates", "libs"),
        entry_indicators=("main.rs", "lib.rs"),
        test_globs=(),
        ignore_dirs=("target", ".git"),
    ),
    EcosystemProfile(
        name=GENERIC,
        config_files=("README.md", "LICENSE"),
        source_dirs=("src", "source", "lib", "app", "core", "features", "modules"),
        entry_indicators=(),
        test_globs=(),
        ignore_dirs=(
            ".git",
            "dist",
            "build",
            "out",
            "target",
            "node_modules",
            "__pycache__",
            ".venv",
        ),
    ),
)

_BY_NAME: Dict[str, EcosystemProfile] = {profile.name: profile for profile in ECOSYSTEMS}


def get_profile(name: str) -> EcosystemProfile:
    """Return the named profile, falling back to the generic one."""
    return _BY_NAME.get(name, _BY_NAME[GENERIC])


def detect_ecosystem(root: str | os.PathLike[str]) -> str:
    """Classify the project by the config files present at its top level.

    Only the immediate listing of ``root`` is inspected. An unreadable root
    raises ``OSError``.
    """
    listing = set(os.listdir(Path(root)))
    for profile in ECOSYSTEMS:
        if profile.name == GENERIC:
            continue
        if any(name in listing for name in profile.config_files):
            return profile.name
    return GENERIC


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile(".*".join(parts))


def matches_ignore(dir_name: str, patterns: Iterable[str]) -> bool:
    """Return True when ``dir_name`` equals a literal pattern or fully matches a ``*`` glob."""
    for pattern in patterns:
        if "*" in pattern:
            if _compile_pattern(pattern).fullmatch(dir_name):
                return True
        elif dir_name == pattern:
            return True
    return False


def merge_ignore(profile: EcosystemProfile, extra: Sequence[str] = ()) -> Tuple[str, ...]:
    """Return the profile's ignore list extended with configured extras, without duplicates."""
    merged = list(profile.ignore_dirs)
    for pattern in extra:
        if pattern and pattern not in merged:
            merged.append(pattern)
    return tuple(merged)


__all__ = [
    "ECOSYSTEMS",
    "GENERIC",
    "detect_ecosystem",
    "get_profile",
    "matches_ignore",
    "merge_ignore",
]
