"""
Connection-level cancellation for ``requests``.

``requests`` cannot interrupt a call that is waiting for the server, so the
:class:`CancellableHTTPAdapter` mounts urllib3 connection classes that
report themselves to the :class:`AbortScope` active on the dispatching
thread.  Aborting the scope shuts the socket down, which wakes any blocked
``recv`` and surfaces as a ``requests.ConnectionError`` in that thread.

Usage::

    scope = AbortScope()
    with scope.active():
        resp = session.send(prepared, stream=True)
    ...
    scope.abort()    # from any thread
    scope.release()  # once the response body is done
"""

import socket
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

_current = threading.local()


class AbortScope:
    """Link between one call and the pooled connection serving it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._conn: Optional[HTTPConnection] = None
        self._aborted = False
        self._released = False

    @property
    def aborted(self) -> bool:
        return self._aborted

    @contextmanager
    def active(self) -> Iterator["AbortScope"]:
        """Make this scope the one connections on this thread attach to."""
        previous = getattr(_current, "scope", None)
        _current.scope = self
        try:
            yield self
        finally:
            _current.scope = previous

    def attach(self, conn: HTTPConnection) -> None:
        with self._lock:
            if self._released:
                return
            self._conn = conn
            aborted = self._aborted
        if aborted:
            _shutdown(conn)

    def abort(self) -> None:
        """Shut down the attached connection; later attaches are shut too."""
        with self._lock:
            if self._aborted or self._released:
                return
            self._aborted = True
            conn = self._conn
        if conn is not None:
            _shutdown(conn)

    def release(self) -> None:
        """Forget the connection so it can serve other calls from the pool."""
        with self._lock:
            self._released = True
            self._conn = None


def _shutdown(conn: HTTPConnection) -> None:
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError:
        # already closed by the peer or by urllib3
        return


def _attach_current(conn: HTTPConnection) -> None:
    scope = getattr(_current, "scope", None)
    if scope is not None:
        scope.attach(conn)


class _TrackedHTTPConnection(HTTPConnection):
    def connect(self) -> None:
        super().connect()
        _attach_current(self)

    def request(self, *args: Any, **kwargs: Any) -> None:
        _attach_current(self)
        super().request(*args, **kwargs)


class _TrackedHTTPSConnection(HTTPSConnection):
    def connect(self) -> None:
        super().connect()
        _attach_current(self)

    def request(self, *args: Any, **kwargs: Any) -> None:
        _attach_current(self)
        super().request(*args, **kwargs)


class _TrackedHTTPConnectionPool(HTTPConnectionPool):
    ConnectionCls = _TrackedHTTPConnection


class _TrackedHTTPSConnectionPool(HTTPSConnectionPool):
    ConnectionCls = _TrackedHTTPSConnection


_TRACKED_POOLS = {
    "http": _TrackedHTTPConnectionPool,
    "https": _TrackedHTTPSConnectionPool,
}


class CancellableHTTPAdapter(HTTPAdapter):
    """
    ``HTTPAdapter`` whose connections can be shut down through an
    :class:`AbortScope`.  Behaves like the stock adapter when no scope is
    active.
    """

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        super().init_poolmanager(*args, **kwargs)
        self.poolmanager.pool_classes_by_scheme = dict(_TRACKED_POOLS)

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any):
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        manager.pool_classes_by_scheme = dict(_TRACKED_POOLS)
        return manager
