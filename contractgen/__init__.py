"""Module discovery, contract drafting and drift detection.

The functions re-exported here are the single programmatic surface shared by
the CLI and the editor service.
"""

from .drafts import render_draft
from .drift import DriftStatus, check_drift, resync_mirror
from .ecosystems import detect_ecosystem
from .module_scanner import discover_modules
from .scoring import score_and_recommend
from .stores.registry import append_registry

__all__ = [
    "DriftStatus",
    "append_registry",
    "check_drift",
    "detect_ecosystem",
    "discover_modules",
    "render_draft",
    "resync_mirror",
    "score_and_recommend",
]
