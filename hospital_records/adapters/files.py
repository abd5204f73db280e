"""Low-level file helpers shared by the blob store and the CSV writers."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from hospital_records.domain.ports import PersistenceError

logger = logging.getLogger(__name__)


def ensure_directory(directory: Union[str, Path]) -> Path:
    """Create ``directory`` (and parents) if it does not exist yet.

    Raises:
        PersistenceError: If the directory cannot be created
    """
    path = Path(directory)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError(
            f"Cannot create data directory {path}: {e}",
            path=str(path),
            operation="mkdir",
        ) from e
    return path


def write_atomically(path: Union[str, Path], data: bytes, operation: str = "write") -> None:
    """Replace ``path`` with ``data`` via a temporary file in the same directory.

    Readers never see a half-written file; either the old or the new content
    is on disk.

    Raises:
        PersistenceError: If the temporary file cannot be written or moved
    """
    target = Path(path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        with os.fdopen(fd, "wb") as handle:
            handle.write(data)
        os.replace(tmp_name, target)
        tmp_name = None
    except OSError as e:
        raise PersistenceError(
            f"Error while saving {target.name}: {e}",
            path=str(target),
            operation=operation,
        ) from e
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
    logger.debug(f"Wrote {len(data)} bytes to {target}")
