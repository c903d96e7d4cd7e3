"""
Incremental reader for ``data: `` framed (SSE-style) response bodies.

A streaming call hands its open 200 response to a :class:`StreamReader`,
which runs one background thread per call.  The thread reads the body line
by line and pushes every ``data: `` payload into a :class:`ChunkStream` – a
bounded queue that the caller drains with :meth:`ChunkStream.recv`.

Framing rules:

* lines are stripped of surrounding whitespace,
* lines that do not start with ``data: `` (blank separators, keep-alives,
  ``event:``/``id:`` fields) are skipped silently,
* ``data: [DONE]`` ends the stream cleanly,
* any other ``data: `` line is emitted as one chunk, in wire order,
* a read failure, or the body ending before ``[DONE]``, ends the stream
  with a terminal error.
"""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

import requests

from azopenai_lib.base.constants import (
    SSE_DATA_PREFIX,
    SSE_DONE,
    STREAM_CHUNK_SIZE,
    STREAM_QUEUE_SIZE,
)
from azopenai_lib.exceptions import CallCancelledError, StreamError
from azopenai_lib.utils.context import CallContext


@dataclass(frozen=True)
class StreamChunk:
    """
    One message of a stream: either a ``payload`` or a terminal ``error``.

    Without a decoder the payload is the raw bytes that followed the
    ``data: `` prefix.
    """

    payload: Any = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class _End:
    error: Optional[BaseException] = None


class ChunkStream:
    """
    Bounded, cancellable producer/consumer queue of :class:`StreamChunk`.

    At most ``capacity`` payloads wait undelivered; the producer blocks when
    the consumer falls behind and is woken by either a delivery or the
    cancellation of ``ctx``.  The terminal signal never waits for a slot.
    A stream delivers zero or more payload chunks and then ends, either
    cleanly (:meth:`recv` returns ``None``) or with exactly one error chunk,
    after which :meth:`recv` returns ``None``.

    Parameters
    ----------
    ctx : CallContext
        Context owned by this stream.  Cancelling it (or calling
        :meth:`close`) aborts the underlying read.
    capacity : int
        Maximum number of undelivered payloads.
    """

    def __init__(self, ctx: CallContext, capacity: int = STREAM_QUEUE_SIZE) -> None:
        self.ctx = ctx
        self._queue: "queue.SimpleQueue[Any]" = queue.SimpleQueue()
        self._capacity = max(1, capacity)
        self._pending = 0
        self._slots = threading.Condition()
        self._finished = False
        self._thread: Optional[threading.Thread] = None
        self._unwatch = ctx.add_cancel_callback(self._wake)

    @classmethod
    def failed(cls, ctx: CallContext, error: BaseException) -> "ChunkStream":
        """A stream whose only message is ``error``."""
        stream = cls(ctx)
        stream._finish(error)
        return stream

    def _wake(self) -> None:
        with self._slots:
            self._slots.notify_all()

    # ------------------------------------------------------------------ #
    # Producer side
    # ------------------------------------------------------------------ #
    def _emit(self, payload: Any) -> bool:
        with self._slots:
            self._slots.wait_for(
                lambda: self._pending < self._capacity or self.ctx.cancelled
            )
            if self.ctx.cancelled:
                return False
            self._pending += 1
        self._queue.put(StreamChunk(payload=payload))
        return True

    def _finish(self, error: Optional[BaseException] = None) -> None:
        self._unwatch()
        self.ctx.detach()
        self._queue.put(_End(error))

    # ------------------------------------------------------------------ #
    # Consumer side
    # ------------------------------------------------------------------ #
    def recv(self, timeout: Optional[float] = None) -> Optional[StreamChunk]:
        """
        Return the next chunk, or ``None`` once the stream has ended.

        Raises
        ------
        queue.Empty
            If ``timeout`` elapses before a message arrives.
        """
        if self._finished:
            return None
        item = self._queue.get(timeout=timeout)
        if isinstance(item, _End):
            self._finished = True
            if item.error is None:
                return None
            return StreamChunk(error=item.error)
        with self._slots:
            self._pending -= 1
            self._slots.notify()
        return item

    def __iter__(self) -> Iterator[StreamChunk]:
        while True:
            chunk = self.recv()
            if chunk is None:
                return
            yield chunk
            if chunk.error is not None:
                return

    def payloads(self) -> Iterator[Any]:
        """Iterate over payloads, raising the terminal error if there is one."""
        for chunk in self:
            if chunk.error is not None:
                raise chunk.error
            yield chunk.payload

    @property
    def finished(self) -> bool:
        return self._finished

    def close(self) -> None:
        """Stop the producer and release the response."""
        self.ctx.cancel("stream closed by consumer")

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def __enter__(self) -> "ChunkStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class StreamReader:
    """
    Background line reader that feeds a :class:`ChunkStream`.

    Parameters
    ----------
    response : requests.Response
        An open response (``stream=True``) with status 200.  The reader owns
        it from now on and closes it on every exit path.
    stream : ChunkStream
        Destination of the decoded chunks.
    decoder : Optional[Callable[[bytes], Any]]
        Applied to each payload in the reader thread.  A decoder error ends
        the stream with that error.
    release : Optional[Callable[[], None]]
        Called once the response is closed, to unlink the connection from
        the stream context.
    """

    def __init__(
        self,
        response: requests.Response,
        stream: ChunkStream,
        decoder: Optional[Callable[[bytes], Any]] = None,
        chunk_size: int = STREAM_CHUNK_SIZE,
        logger: Optional[logging.Logger] = None,
        release: Optional[Callable[[], None]] = None,
    ) -> None:
        self._response = response
        self._stream = stream
        self._decoder = decoder
        self._chunk_size = chunk_size
        self.logger = logger or logging.getLogger(__name__)
        self._release = release or (lambda: None)

    def start(self) -> ChunkStream:
        thread = threading.Thread(
            target=self._run, name="azopenai-stream-reader", daemon=True
        )
        self._stream._thread = thread
        thread.start()
        return self._stream

    def _run(self) -> None:
        ctx = self._stream.ctx
        # cancelling the context closes the body and its connection
        remove = ctx.add_cancel_callback(self._response.close)
        error: Optional[BaseException]
        try:
            error = self._read_loop()
        except Exception as exc:
            error = exc
        finally:
            remove()
            self._response.close()
            self._release()

        if error is not None and ctx.cancelled:
            if not isinstance(error, CallCancelledError):
                cancelled = CallCancelledError(ctx.reason)
                cancelled.__cause__ = error
                error = cancelled

        if error is None:
            self.logger.debug("stream finished")
        else:
            self.logger.debug("stream terminated: %r", error)
        self._stream._finish(error)

    def _read_loop(self) -> Optional[BaseException]:
        ctx = self._stream.ctx
        lines = self._response.iter_lines(
            chunk_size=self._chunk_size, delimiter=b"\n"
        )
        for raw_line in lines:
            line = raw_line.strip()
            if not line.startswith(SSE_DATA_PREFIX):
                continue

            payload = line[len(SSE_DATA_PREFIX) :]
            if payload == SSE_DONE:
                return None

            if self._decoder is not None:
                payload = self._decoder(payload)
            if not self._stream._emit(payload):
                return CallCancelledError(ctx.reason)

        if ctx.cancelled:
            return CallCancelledError(ctx.reason)
        return StreamError("stream closed before [DONE]")
