"""All-or-nothing file writes."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, text: str) -> int:
    """Write ``text`` as UTF-8 to ``path`` so readers see either the old or the new bytes.

    The data goes to a temporary file in the target directory which then
    replaces ``path``. Returns the number of bytes written.
    """
    data = text.encode("utf-8")
    directory = path.parent
    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        if path.exists():
            os.chmod(temp_name, path.stat().st_mode & 0o777)
        else:
            os.chmod(temp_name, 0o644)
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except FileNotFoundError:
            pass
        raise
    return len(data)


__all__ = ["atomic_write_text"]
