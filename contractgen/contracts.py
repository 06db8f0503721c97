"""Discovery, validation and editing of CONTRACT.md / CONTRACT.yaml pairs on disk."""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Optional

from .drafts import render_blank_mirror, render_blank_primary
from .drift import DriftStatus, check_drift, compute_hash, extract_source_hash, format_timestamp, resync_mirror
from .errors import ConflictError, ValidationError
from .logging import get_logger
from .models import CONTRACT_FILENAMES, MIRROR_FILENAME, PRIMARY_FILENAME
from .stores.files import atomic_write_text

SCAN_IGNORE_DIRS = frozenset(
    {
        ".git",
        "node_modules",
        "vendor",
        ".idea",
        ".vscode",
        ".agent",
        "dist",
        "build",
        "out",
        ".next",
        "coverage",
        "contracts-ui",
    }
)

_PARENT_SEGMENT = re.compile(r"(?:^|/)\.\.(?:/|$)")

_LOGGER = get_logger("contracts")


@dataclass
class ContractEntry:
    """A directory holding a primary document, a mirror, or both."""

    dir: str
    md_path: Optional[str] = None
    md_text: Optional[str] = None
    md_hash: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    yaml_path: Optional[str] = None
    yaml_text: Optional[str] = None
    yaml_source_hash: Optional[str] = None
    status: str = DriftStatus.PARTIAL

    @property
    def drifted(self) -> bool:
        return self.status in (DriftStatus.PARTIAL, DriftStatus.MISMATCH)


@dataclass
class ContractIndex:
    generated_at: str
    contracts: List[ContractEntry] = field(default_factory=list)
    project_root: str = "."

    def drift_only(self) -> "ContractIndex":
        return ContractIndex(
            generated_at=self.generated_at,
            contracts=[entry for entry in self.contracts if entry.drifted],
            project_root=self.project_root,
        )

    def to_dict(self, *, include_text: bool = True) -> Dict[str, Any]:
        contracts = []
        for entry in self.contracts:
            data = asdict(entry)
            if not include_text:
                data.pop("md_text")
                data.pop("yaml_text")
            contracts.append(data)
        return {
            "generated_at": self.generated_at,
            "project_root": self.project_root,
            "contracts": contracts,
        }


@dataclass(frozen=True)
class WriteResult:
    path: str
    sha256: str
    bytes_written: int


def extract_summary(markdown: str) -> Dict[str, Optional[str]]:
    """Return the first ``# `` heading and the first non-heading paragraph of ``markdown``."""
    text = markdown.replace("\r\n", "\n")
    title = None
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("# "):
            title = stripped[2:].strip()
            break

    summary = None
    for paragraph in re.split(r"\n\s*\n", text):
        collapsed = re.sub(r"\s+", " ", paragraph.strip())
        if collapsed and not collapsed.startswith("#"):
            summary = collapsed
            break
    return {"title": title, "summary": summary}


def _root(root: str | os.PathLike[str]) -> Path:
    root_path = Path(root).expanduser().resolve()
    if not root_path.is_dir():
        raise FileNotFoundError(f"Project root not found: {root}")
    return root_path


def _normalise(relative: str) -> str:
    return str(relative or "").replace("\\", "/")


def _is_absolute(raw: str) -> bool:
    return raw.startswith("/") or re.match(r"^[A-Za-z]:", raw) is not None


def _ensure_within(root: Path, target: Path) -> None:
    if target != root and root not in target.parents:
        raise ValidationError("Path escapes the project root.")


def resolve_contract_path(root: str | os.PathLike[str], relative_path: str) -> Path:
    """Validate ``relative_path`` and return the absolute contract file it names.

    Only ``CONTRACT.md``/``CONTRACT.yaml`` basenames are accepted and the
    resolved path, symlinks included, must stay inside ``root``.
    """
    root_path = _root(root)
    raw = _normalise(relative_path)
    if not raw or "\0" in raw:
        raise ValidationError("Invalid path.")
    if _is_absolute(raw):
        raise ValidationError("Absolute paths are not allowed.")
    if PurePosixPath(raw).name not in CONTRACT_FILENAMES:
        raise ValidationError(f"Only {PRIMARY_FILENAME} / {MIRROR_FILENAME} can be written.")

    target = (root_path / raw).resolve()
    _ensure_within(root_path, target)
    if target.name not in CONTRACT_FILENAMES:
        raise ValidationError(f"Only {PRIMARY_FILENAME} / {MIRROR_FILENAME} can be written.")
    return target


def resolve_contract_dir(root: str | os.PathLike[str], directory: str) -> Path:
    """Validate a directory relative to ``root`` (``""``/``"."`` is the root itself)."""
    root_path = _root(root)
    raw = _normalise(directory)
    if _is_absolute(raw):
        raise ValidationError("Absolute paths are not allowed.")
    raw = raw.rstrip("/") or "."
    if "\0" in raw or _PARENT_SEGMENT.search(raw):
        raise ValidationError("Invalid directory.")
    target = (root_path / raw).resolve()
    _ensure_within(root_path, target)
    if not target.is_dir():
        raise FileNotFoundError(f"Directory not found: {directory}")
    return target


def _relative(root: Path, path: Path) -> str:
    relative = path.relative_to(root).as_posix()
    return "." if relative in ("", ".") else relative


def _read_bytes(path: Path) -> Optional[bytes]:
    try:
        return path.read_bytes()
    except OSError as exc:
        _LOGGER.debug("Skipping unreadable contract file %s: %s", path, exc)
        return None


def scan_contracts(root: str | os.PathLike[str], *, now: Optional[datetime] = None) -> ContractIndex:
    """Collect every contract directory below ``root`` with its drift status."""
    root_path = _root(root)
    rows: Dict[str, ContractEntry] = {}
    raw: Dict[str, Dict[str, Optional[bytes]]] = {}

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=lambda exc: _LOGGER.debug("%s", exc)):
        dirnames[:] = sorted(name for name in dirnames if name not in SCAN_IGNORE_DIRS)
        current = Path(dirpath)
        for filename in sorted(filenames):
            if filename not in CONTRACT_FILENAMES:
                continue
            full = current / filename
            data = _read_bytes(full)
            if data is None:
                continue
            rel_dir = _relative(root_path, current)
            entry = rows.setdefault(rel_dir, ContractEntry(dir=rel_dir))
            sides = raw.setdefault(rel_dir, {"md": None, "yaml": None})
            text = data.decode("utf-8", errors="replace")
            rel_file = full.relative_to(root_path).as_posix()
            if filename == PRIMARY_FILENAME:
                sides["md"] = data
                entry.md_path = rel_file
                entry.md_text = text
                entry.md_hash = compute_hash(data)
                summary = extract_summary(text)
                entry.title = summary["title"]
                entry.summary = summary["summary"]
            else:
                sides["yaml"] = data
                entry.yaml_path = rel_file
                entry.yaml_text = text
                entry.yaml_source_hash = extract_source_hash(data)

    for rel_dir, entry in rows.items():
        entry.status = check_drift(raw[rel_dir]["md"], raw[rel_dir]["yaml"])

    contracts = [rows[key] for key in sorted(rows)]
    _LOGGER.debug("Found %d contract directories under %s", len(contracts), root_path)
    return ContractIndex(generated_at=format_timestamp(now or datetime.now(UTC)), contracts=contracts)


def write_contract_file(root: str | os.PathLike[str], relative_path: str, text: str) -> WriteResult:
    """Atomically replace a contract file after basename and traversal checks."""
    if not isinstance(text, str):
        raise ValidationError("Invalid body. Expected { path, text }.")
    target = resolve_contract_path(root, relative_path)
    if not target.parent.is_dir():
        raise FileNotFoundError(f"Directory not found: {target.parent}")
    written = atomic_write_text(target, text)
    _LOGGER.info("Saved %s (%d bytes)", _normalise(relative_path), written)
    return WriteResult(path=_normalise(relative_path), sha256=compute_hash(text), bytes_written=written)


def create_primary(root: str | os.PathLike[str], directory: str) -> Path:
    """Create a blank CONTRACT.md in ``directory``; an existing one is a conflict."""
    target = resolve_contract_dir(root, directory) / PRIMARY_FILENAME
    if target.exists():
        raise ConflictError(f"{PRIMARY_FILENAME} already exists.")
    atomic_write_text(target, render_blank_primary())
    _LOGGER.info("Created %s", target)
    return target


def create_mirror(
    root: str | os.PathLike[str], directory: str, *, now: Optional[datetime] = None
) -> Path:
    """Create a minimal CONTRACT.yaml recording the current primary hash, if any."""
    folder = resolve_contract_dir(root, directory)
    target = folder / MIRROR_FILENAME
    if target.exists():
        raise ConflictError(f"{MIRROR_FILENAME} already exists.")
    primary = _read_bytes(folder / PRIMARY_FILENAME) if (folder / PRIMARY_FILENAME).is_file() else None
    source_hash = compute_hash(primary) if primary is not None else ""
    atomic_write_text(target, render_blank_mirror(source_hash, now))
    _LOGGER.info("Created %s", target)
    return target


def sync_contract(
    root: str | os.PathLike[str], directory: str, *, now: Optional[datetime] = None
) -> str:
    """Rewrite the mirror's hash and timestamp from the current primary; returns the new status."""
    folder = resolve_contract_dir(root, directory)
    primary_path = folder / PRIMARY_FILENAME
    mirror_path = folder / MIRROR_FILENAME
    if not primary_path.is_file():
        raise FileNotFoundError(f"{PRIMARY_FILENAME} not found in {directory or '.'}")
    if not mirror_path.is_file():
        raise FileNotFoundError(f"{MIRROR_FILENAME} not found in {directory or '.'}")

    primary = primary_path.read_bytes()
    mirror = mirror_path.read_bytes()
    updated = resync_mirror(primary, mirror, now=now)
    atomic_write_text(mirror_path, updated)
    _LOGGER.info("Synced meta for %s", mirror_path)
    return check_drift(primary, updated)


__all__ = [
    "ContractEntry",
    "ContractIndex",
    "SCAN_IGNORE_DIRS",
    "WriteResult",
    "create_mirror",
    "create_primary",
    "extract_summary",
    "resolve_contract_dir",
    "resolve_contract_path",
    "scan_contracts",
    "sync_contract",
    "write_contract_file",
]
