"""
Reusable request-body buffers.

Every outgoing call serialises its payload into a :class:`Buffer` borrowed
from a :class:`BufferPool`.  The buffer is a read-only cursor over the bytes,
so ``requests`` can stream it as the request body, and it goes back to the
pool as soon as the request has been sent.
"""

import queue
import threading
from typing import List, Optional

from azopenai_lib.base.constants import BUFFER_POOL_SIZE


class Buffer:
    """
    Read-only cursor over a byte string.

    ``requests`` treats any object with ``read`` as a file body and uses
    ``len()`` to fill in ``Content-Length``.
    """

    __slots__ = ("_data", "_ptr")

    def __init__(self, data: bytes = b"") -> None:
        self._data = data
        self._ptr = 0

    def reset(self, data: bytes) -> None:
        self._data = data
        self._ptr = 0

    def read(self, size: Optional[int] = -1) -> bytes:
        if self._ptr >= len(self._data):
            return b""
        if size is None or size < 0:
            end = len(self._data)
        else:
            end = min(self._ptr + size, len(self._data))
        chunk = self._data[self._ptr : end]
        self._ptr = end
        return chunk

    def close(self) -> None:
        self._data = b""
        self._ptr = 0

    def __len__(self) -> int:
        return len(self._data) - self._ptr

    def __repr__(self) -> str:
        return f"Buffer(len={len(self)})"


class BufferPool:
    """
    Two-level pool of :class:`Buffer` objects.

    The fast path is a bounded ring (``queue.Queue`` with ``capacity``
    slots).  Buffers that do not fit in the ring go to an unbounded overflow
    list, and a fresh buffer is created only when both are empty.

    Parameters
    ----------
    capacity : int
        Size of the ring; defaults to ``AZOPENAI_BUFFER_POOL_SIZE``.
    """

    def __init__(self, capacity: int = BUFFER_POOL_SIZE) -> None:
        self._ring: "queue.Queue[Buffer]" = queue.Queue(maxsize=capacity)
        self._overflow: List[Buffer] = []
        self._lock = threading.Lock()

    def get(self) -> Buffer:
        try:
            return self._ring.get_nowait()
        except queue.Empty:
            pass
        with self._lock:
            if self._overflow:
                return self._overflow.pop()
        return Buffer()

    def put(self, buff: Buffer) -> None:
        # a returned buffer never carries bytes into its next use
        buff.close()
        try:
            self._ring.put_nowait(buff)
            return
        except queue.Full:
            pass
        with self._lock:
            self._overflow.append(buff)

    def __len__(self) -> int:
        with self._lock:
            return self._ring.qsize() + len(self._overflow)
