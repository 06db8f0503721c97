"""Regex-based public symbol extraction for JavaScript/TypeScript and Python modules."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Sequence

from .base import ExportExtractor
from ..logging import get_logger

_JS_DECLARATION = re.compile(
    r"\bexport\s+(?:default\s+)?(?:declare\s+)?(?:async\s+)?"
    r"(?:const|let|var|function\*?|class|interface|type|enum|abstract\s+class)\s+([A-Za-z_$][\w$]*)"
)
_JS_EXPORT_BLOCK = re.compile(r"\bexport\s*(?:type\s*)?\{([^}]*)\}")
_CJS_EXPORTS = re.compile(r"\bmodule\.exports\s*=\s*\{([^}]*)\}")

_PY_ALL = re.compile(r"^__all__\s*(?::[^=]+)?=\s*[\[(]([^\])]*)[\])]", re.MULTILINE)
_PY_QUOTED = re.compile(r"""['"]([^'"]+)['"]""")
_PY_FROM_IMPORT = re.compile(
    r"^[ \t]*from\s+(\S+)\s+import\s+(?:\(([^)]*)\)|([^\n#]+))", re.MULTILINE
)

_LOGGER = get_logger("analyzers.exports")


def _dedupe(names: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            ordered.append(name)
    return ordered


def _public_name(spec: str) -> str | None:
    """Return the exported identifier of ``name`` or ``name as alias``."""
    parts = spec.split()
    if not parts:
        return None
    if parts[0] == "type" and len(parts) > 1:
        parts = parts[1:]
    if len(parts) >= 3 and parts[1] == "as":
        return parts[2]
    return parts[0]


def _read(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        _LOGGER.debug("Cannot read %s for export extraction: %s", path, exc)
        return None


def extract_js_exports(text: str) -> List[str]:
    """Collect declaration exports, ``export { ... }`` blocks and ``module.exports`` keys."""
    names: List[str] = [match.group(1) for match in _JS_DECLARATION.finditer(text)]

    for block in _JS_EXPORT_BLOCK.finditer(text):
        for spec in block.group(1).split(","):
            name = _public_name(spec.strip())
            if name and re.fullmatch(r"[A-Za-z_$][\w$]*", name):
                names.append(name)

    cjs = _CJS_EXPORTS.search(text)
    if cjs:
        for pair in cjs.group(1).split(","):
            key = pair.split(":", 1)[0].strip().strip("'\"")
            if re.fullmatch(r"[A-Za-z_$][\w$]*", key):
                names.append(key)

    return _dedupe(names)


def extract_python_exports(text: str) -> List[str]:
    """Return ``__all__`` when declared, otherwise names re-exported via ``from x import y``."""
    declared = _PY_ALL.search(text)
    if declared:
        return _dedupe(_PY_QUOTED.findall(declared.group(1)))

    names: List[str] = []
    for match in _PY_FROM_IMPORT.finditer(text):
        if match.group(1) == "__future__":
            continue
        imported = match.group(2) if match.group(2) is not None else match.group(3)
        for spec in imported.replace("\\", " ").split(","):
            name = _public_name(spec.strip())
            if name and name.isidentifier():
                names.append(name)
    return _dedupe(names)


class JavaScriptExports(ExportExtractor):
    """Reads the package index file of a JS/TS module directory."""

    INDEX_FILES: Sequence[str] = ("index.js", "index.ts", "index.jsx", "index.tsx")

    def supports(self, ecosystem: str) -> bool:
        return ecosystem == "nodejs"

    def extract(self, directory: Path) -> List[str]:
        for name in self.INDEX_FILES:
            candidate = directory / name
            if candidate.is_file():
                text = _read(candidate)
                return extract_js_exports(text) if text is not None else []
        return []


class PythonExports(ExportExtractor):
    """Reads ``__init__.py`` of a Python package directory."""

    def supports(self, ecosystem: str) -> bool:
        return ecosystem == "python"

    def extract(self, directory: Path) -> List[str]:
        init = directory / "__init__.py"
        if not init.is_file():
            return []
        text = _read(init)
        return extract_python_exports(text) if text is not None else []


_EXTRACTORS: Sequence[ExportExtractor] = (JavaScriptExports(), PythonExports())


def extract_exports(directory: Path, ecosystem: str) -> List[str]:
    """Return the exports of ``directory`` using the strategy for ``ecosystem``, if any."""
    for extractor in _EXTRACTORS:
        if extractor.supports(ecosystem):
            return extractor.extract(Path(directory))
    return []


__all__ = [
    "JavaScriptExports",
    "PythonExports",
    "extract_exports",
    "extract_js_exports",
    "extract_python_exports",
]
