"""Small filesystem helpers."""

from __future__ import annotations

import contextlib
import os
from pathlib import Path


def write_atomic(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` via a sibling temp file and ``os.replace``.

    Readers see either the old or the new content in full. On failure the temp
    file is removed and the error re-raised.
    """

    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(content, encoding="utf-8")
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise
