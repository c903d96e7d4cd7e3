"""
Caller-controlled cancellation for outgoing calls.

A :class:`CallContext` is passed to every network operation.  It carries an
optional deadline and a cancellation flag; the transport turns the deadline
into the ``requests`` timeout and registers callbacks that shut down the
connection of the call and close its response when the context is
cancelled, so a call blocked on the server is aborted by the HTTP layer
itself.
"""

import threading
import time
from typing import Callable, List, Optional

from azopenai_lib.exceptions import CallCancelledError


class CallContext:
    """
    Cancellation token with an optional deadline.

    Parameters
    ----------
    timeout : Optional[float]
        Seconds until the context cancels itself.  ``None`` means the
        context lives until :meth:`cancel` is called.
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []
        self._reason = "context cancelled"
        self._timer: Optional[threading.Timer] = None
        self._detach: Callable[[], None] = lambda: None

        self.deadline: Optional[float] = None
        if timeout is not None:
            self.deadline = time.monotonic() + timeout
            self._timer = threading.Timer(timeout, self._expire)
            self._timer.daemon = True
            self._timer.start()

    @classmethod
    def background(cls) -> "CallContext":
        """A context that is never cancelled unless asked to."""
        return cls()

    def child(self, timeout: Optional[float] = None) -> "CallContext":
        """
        Return a context that is also cancelled when this one is.

        The link to the parent lasts until the child is cancelled or
        :meth:`detach` is called on it.
        """
        ctx = CallContext(timeout=timeout)
        if self.deadline is not None and (
            ctx.deadline is None or self.deadline < ctx.deadline
        ):
            ctx.deadline = self.deadline
        remove = self.add_cancel_callback(lambda: ctx.cancel(self._reason))
        ctx._detach = remove
        ctx.add_cancel_callback(remove)
        return ctx

    def detach(self) -> None:
        """Unlink a child context from its parent without cancelling it."""
        self._detach()

    # ------------------------------------------------------------------ #
    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, ``None`` when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CallCancelledError(self._reason)

    # ------------------------------------------------------------------ #
    def add_cancel_callback(self, fn: Callable[[], None]) -> Callable[[], None]:
        """
        Run ``fn`` once when the context is cancelled.

        If the context is already cancelled ``fn`` runs immediately.  The
        returned callable unregisters ``fn``.
        """
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(fn)

                def _remove() -> None:
                    with self._lock:
                        if fn in self._callbacks:
                            self._callbacks.remove(fn)

                return _remove
        fn()
        return lambda: None

    def cancel(self, reason: str = "context cancelled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
        if self._timer is not None:
            self._timer.cancel()
        for fn in callbacks:
            fn()

    def _expire(self) -> None:
        self.cancel("context deadline exceeded")

    def close(self) -> None:
        """Stop the deadline timer without cancelling."""
        if self._timer is not None:
            self._timer.cancel()

    def __enter__(self) -> "CallContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
