"""Content-hash drift detection between CONTRACT.md and CONTRACT.yaml."""

from __future__ import annotations

import hashlib
import re
from datetime import UTC, datetime
from typing import List, Optional, Tuple

HASH_ALGORITHM = "sha256"
META_KEY = "meta"
SOURCE_HASH_KEY = "source_hash"
LAST_SYNC_KEY = "last_sync"

_SOURCE_HASH_LINE = re.compile(
    r"""^[ \t]*source_hash[ \t]*:[ \t]*(["']?)([^"'\r\n#]+)\1[ \t]*(?:#[^\r\n]*)?\r?$""",
    re.IGNORECASE | re.MULTILINE,
)
_HASH_VALUE = re.compile(r"^([A-Za-z0-9_-]+):([0-9A-Fa-f]+)$")
_META_LINE = re.compile(r"^\s*meta\s*:\s*(?:#.*)?$")


class DriftStatus:
    """Relationship between a primary document and its mirror."""

    OK = "ok"
    MISMATCH = "mismatch"
    PARTIAL = "partial"
    UNKNOWN = "unknown"

    ALL = (OK, MISMATCH, PARTIAL, UNKNOWN)


Document = bytes | str


def _as_bytes(document: Document) -> bytes:
    return document.encode("utf-8") if isinstance(document, str) else bytes(document)


def _as_text(document: Document) -> str:
    return document if isinstance(document, str) else bytes(document).decode("utf-8", errors="replace")


def format_timestamp(now: Optional[datetime] = None) -> str:
    moment = now or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def compute_hash(primary: Document) -> str:
    """Return ``sha256:<hexdigest>`` of the primary document's exact bytes."""
    return f"{HASH_ALGORITHM}:{hashlib.sha256(_as_bytes(primary)).hexdigest()}"


def _split_lines(text: str) -> Tuple[List[str], bool]:
    """Split on "\n" only. Each line keeps a trailing "\r" it carried."""
    lines = text.split("\n")
    trailing = lines[-1] == ""
    if trailing:
        lines.pop()
    return lines, trailing


def _join_lines(lines: List[str], trailing: bool) -> str:
    return "\n".join(lines) + ("\n" if trailing else "")


def _carriage(line: str) -> str:
    return "\r" if line.endswith("\r") else ""


def _find_meta_block(lines: List[str]) -> Optional[Tuple[int, int]]:
    """Return ``(header_index, end_index)`` of the first ``meta:`` block, end exclusive."""
    for index, line in enumerate(lines):
        if _META_LINE.match(line):
            end = index + 1
            while end < len(lines):
                current = lines[end]
                if current.strip() and not current[0].isspace():
                    break
                end += 1
            return index, end
    return None


def extract_source_hash(mirror: Document) -> Optional[str]:
    """Return the hash recorded under ``meta:`` (or anywhere, lacking that), or None."""
    text = _as_text(mirror)
    lines, _ = _split_lines(text)
    block = _find_meta_block(lines)
    if block is not None:
        start, end = block
        match = _SOURCE_HASH_LINE.search("\n".join(lines[start + 1 : end]))
        if match:
            return match.group(2).strip()
    match = _SOURCE_HASH_LINE.search(text)
    return match.group(2).strip() if match else None


def check_drift(primary: Optional[Document], mirror: Optional[Document]) -> str:
    """Classify a document pair as ok, mismatch, partial or unknown.

    A missing side (``None``) is always ``partial``. A mirror whose hash field is
    absent or not of the form ``algorithm:hex`` is ``unknown``.
    """
    if primary is None or mirror is None:
        return DriftStatus.PARTIAL
    recorded = extract_source_hash(mirror)
    if recorded is None or not _HASH_VALUE.match(recorded):
        return DriftStatus.UNKNOWN
    if recorded.lower() == compute_hash(primary).lower():
        return DriftStatus.OK
    return DriftStatus.MISMATCH


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def set_meta_field(mirror: Document, key: str, value: str) -> str:
    """Set ``key`` inside the mirror's ``meta:`` block, leaving every other line untouched.

    An existing key line in the block is replaced in place, a missing key is
    inserted directly under the block header, and a missing block is created at
    the top of the document.
    """
    text = _as_text(mirror)
    lines, trailing = _split_lines(text)
    key_pattern = re.compile(rf"^(\s*){re.escape(key)}\s*:", re.IGNORECASE)
    block = _find_meta_block(lines)

    if block is None:
        cr = _carriage(lines[0]) if lines else ""
        header = [f"{META_KEY}:{cr}", f"  {key}: {_quote(value)}{cr}"]
        if lines:
            header.append(cr)
        return _join_lines(header + lines, trailing)

    start, end = block
    for index in range(start + 1, end):
        match = key_pattern.match(lines[index])
        if match:
            indent = match.group(1) or "  "
            lines[index] = f"{indent}{key}: {_quote(value)}{_carriage(lines[index])}"
            return _join_lines(lines, trailing)

    header_indent = lines[start][: len(lines[start]) - len(lines[start].lstrip())]
    lines.insert(
        start + 1, f"{header_indent}  {key}: {_quote(value)}{_carriage(lines[start])}"
    )
    return _join_lines(lines, trailing)


def resync_mirror(
    primary: Document, mirror: Optional[Document], now: Optional[datetime] = None
) -> str:
    """Record the primary's current hash and a fresh timestamp in the mirror."""
    updated = set_meta_field(mirror or "", SOURCE_HASH_KEY, compute_hash(primary))
    return set_meta_field(updated, LAST_SYNC_KEY, format_timestamp(now))


__all__ = [
    "DriftStatus",
    "HASH_ALGORITHM",
    "check_drift",
    "compute_hash",
    "extract_source_hash",
    "format_timestamp",
    "resync_mirror",
    "set_meta_field",
]
