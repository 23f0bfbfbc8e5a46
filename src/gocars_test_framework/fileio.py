"""
Atomic file writes shared by the store, report engine and config commands.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from .exceptions import StorageError


def write_text_atomic(path: Union[str, Path], content: str) -> Path:
    """Write *content* to *path* through a temp file and ``os.replace``.

    Readers never observe a half-written file. Parent directories are
    created as needed.

    Raises:
        StorageError: If the directory or file cannot be written
    """
    p = Path(path)
    try:
        p.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=str(p.parent), prefix=f".{p.name}.", suffix=".tmp")
    except OSError as e:
        raise StorageError(str(p), e) from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp, str(p))
    except BaseException as e:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        if isinstance(e, OSError):
            raise StorageError(str(p), e) from e
        raise
    return p


def write_json_atomic(path: Union[str, Path], data: Any) -> Path:
    """Atomically write *data* as indented JSON to *path*."""
    return write_text_atomic(path, json.dumps(data, indent=2) + "\n")
