import ctypes
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


def secure_zero(buffer: Optional[Union[bytearray, memoryview]]) -> None:
    """Overwrite a mutable buffer with zeros in place.

    Immutable ``bytes`` cannot be wiped from Python; callers keep secrets in
    ``bytearray`` so this has something to clear.
    """
    if buffer is None:
        return
    if isinstance(buffer, memoryview):
        if buffer.readonly:
            return
        buffer = buffer.cast("B")
    size = len(buffer)
    if size == 0:
        return
    try:
        view = (ctypes.c_char * size).from_buffer(buffer)
        ctypes.memset(ctypes.addressof(view), 0, size)
        del view
    except (TypeError, BufferError) as e:
        # Exported buffers refuse from_buffer; fall back to slice assignment.
        logger.debug(f"memset unavailable, using slice wipe: {e}")
        buffer[:] = bytes(size)


def wipe_all(*buffers) -> None:
    for buffer in buffers:
        if isinstance(buffer, (bytearray, memoryview)):
            secure_zero(buffer)
