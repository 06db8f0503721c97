"""Best-effort project metadata readers."""

from __future__ import annotations

import json
import re
import tomllib
from pathlib import Path
from typing import Dict, Optional

from .errors import ParseError
from .logging import get_logger
from .models import ProjectProfile

README_NAMES = ("README.md", "README.txt", "README.rst", "README")
README_EXCERPT_CHARS = 2000

_GO_MODULE = re.compile(r"^\s*module\s+(\S+)", re.MULTILINE)
_TOML_STRING_KEY = r"""^[ \t]*{key}[ \t]*=[ \t]*["']([^"'\n]*)["']"""

_LOGGER = get_logger("project")


def read_package_json(root: Path) -> Optional[Dict[str, object]]:
    """Return the parsed package.json contents, or None when absent.

    Raises ``ParseError`` when the file exists but cannot be decoded.
    """
    package_json = root / "package.json"
    if not package_json.is_file():
        return None
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ParseError(f"Unreadable package.json: {exc}") from exc
    return data if isinstance(data, dict) else None


def _load_toml(path: Path) -> Optional[Dict[str, object]]:
    if not path.is_file():
        return None
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ParseError(f"Unreadable {path.name}: {exc}") from exc


def _name_and_description(table: object) -> Dict[str, Optional[str]]:
    result: Dict[str, Optional[str]] = {"name": None, "description": None}
    if not isinstance(table, dict):
        return result
    for key in result:
        value = table.get(key)
        if isinstance(value, str) and value.strip():
            result[key] = value.strip()
    return result


def read_pyproject(root: Path) -> Optional[Dict[str, Optional[str]]]:
    """Return name/description from pyproject.toml ([project] or [tool.poetry])."""
    try:
        data = _load_toml(root / "pyproject.toml")
    except ParseError as exc:
        _LOGGER.debug("Falling back to key scan of pyproject.toml: %s", exc)
        return _scan_toml_keys(root / "pyproject.toml")
    if data is None:
        return None
    result = _name_and_description(data.get("project"))
    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    fallback = _name_and_description(poetry)
    for key, value in fallback.items():
        if result[key] is None:
            result[key] = value
    return result


def _scan_toml_keys(path: Path) -> Dict[str, Optional[str]]:
    result: Dict[str, Optional[str]] = {"name": None, "description": None}
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return result
    for key in ("name", "description"):
        match = re.search(_TOML_STRING_KEY.format(key=key), text, re.MULTILINE)
        if match and match.group(1).strip():
            result[key] = match.group(1).strip()
    return result


def read_cargo_toml(root: Path) -> Optional[Dict[str, Optional[str]]]:
    data = _load_toml(root / "Cargo.toml")
    if data is None:
        return None
    return _name_and_description(data.get("package"))


def read_go_mod(root: Path) -> Optional[Dict[str, Optional[str]]]:
    go_mod = root / "go.mod"
    if not go_mod.is_file():
        return None
    try:
        text = go_mod.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    match = _GO_MODULE.search(text)
    return {"name": match.group(1) if match else None, "description": None}


def read_readme(root: Path) -> Optional[str]:
    """Return the leading excerpt of the first README found."""
    for name in README_NAMES:
        readme = root / name
        if not readme.is_file():
            continue
        try:
            content = readme.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        return content[:README_EXCERPT_CHARS]
    return None


def _read_manifest(root: Path, ecosystem: str) -> Dict[str, Optional[str]]:
    if ecosystem == "nodejs":
        package = read_package_json(root) or {}
        return _name_and_description(package)
    if ecosystem == "python":
        return read_pyproject(root) or {}
    if ecosystem == "rust":
        return read_cargo_toml(root) or {}
    if ecosystem == "go":
        return read_go_mod(root) or {}
    return {}


def build_project_profile(root: Path, ecosystem: str) -> ProjectProfile:
    """Gather project identity, falling back to the directory name."""
    root = Path(root)
    try:
        manifest = _read_manifest(root, ecosystem)
    except ParseError as exc:
        _LOGGER.debug("Ignoring project manifest: %s", exc)
        manifest = {}
    return ProjectProfile(
        root=str(root),
        ecosystem=ecosystem,
        name=manifest.get("name") or root.name,
        description=manifest.get("description"),
        readme_excerpt=read_readme(root),
    )


__all__ = [
    "build_project_profile",
    "read_cargo_toml",
    "read_go_mod",
    "read_package_json",
    "read_pyproject",
    "read_readme",
]
