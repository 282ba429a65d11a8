import logging
import os
import tempfile
from contextlib import contextmanager
from typing import BinaryIO, Iterator

from ..core.errors import FileVaultError, StorageError

logger = logging.getLogger(__name__)


@contextmanager
def atomic_output(path: str) -> Iterator[BinaryIO]:
    """Write to a sibling temp file and move it over ``path`` only on success.

    Any exception inside the block removes the temp file, so a failed write
    never leaves a truncated output behind.
    """
    directory = os.path.dirname(os.path.abspath(path))
    base = os.path.basename(path)
    try:
        fd, temp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=directory)
    except OSError as e:
        raise StorageError(f"Failed to create output file in {directory}: {e.strerror or e}", path=path, cause=e) from e

    committed = False
    try:
        with os.fdopen(fd, "wb") as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
        committed = True
    except FileVaultError:
        raise
    except OSError as e:
        raise StorageError(f"Failed to write {path}: {e.strerror or e}", path=path, cause=e) from e
    finally:
        if not committed:
            try:
                os.remove(temp_path)
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Could not remove partial output {temp_path}: {e}")
