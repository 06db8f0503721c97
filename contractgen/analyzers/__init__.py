"""Directory metrics and export extraction used by module discovery."""

from __future__ import annotations

from .base import ExportExtractor
from .exports import JavaScriptExports, PythonExports, extract_exports
from .metrics import collect_metrics

__all__ = [
    "ExportExtractor",
    "JavaScriptExports",
    "PythonExports",
    "collect_metrics",
    "extract_exports",
]
