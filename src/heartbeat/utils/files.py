"""Atomic file helpers shared by the roster store and the widget exporter."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, content: str, prefix: str = ".tmp_") -> None:
    """Write ``content`` to ``path`` so readers never see a partial file.

    The text goes to a temp file in the same directory, which then
    replaces ``path`` in one rename. The temp file is removed on failure.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Write to temp file in same directory (ensures same filesystem)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=prefix)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        Path(temp_path).replace(path)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise
