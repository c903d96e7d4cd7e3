"""
Thin wrapper around ``requests`` that adds authorization, logging and
unified error handling for the Azure OpenAI REST API.

The :class:`HttpRequester` class is shared by every service of one client.
It centralises:

* resolution and caching of per-deployment endpoint URLs,
* attaching credentials through an :class:`Authorizer`,
* serialising payloads into pooled request buffers,
* conversion of non-200 answers into :class:`StatusCodeError` or
  :class:`JSONServiceError`,
* starting background readers for streamed (``data: ``) responses.

No timeout is applied unless the caller's :class:`CallContext` carries a
deadline, and nothing is retried: the adapter is mounted with
``Retry(total=0)``.  Cancelling the context shuts down the connection of
the call, including while the server has not answered yet.
"""

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

import requests
from pydantic import BaseModel
from urllib3.util.retry import Retry

from azopenai_lib.base.constants import (
    API_VERSION,
    CONTENT_TYPE_JSON,
    HTTP_POOL_SIZE,
    STREAM_CHUNK_SIZE,
    STREAM_QUEUE_SIZE,
)
from azopenai_lib.exceptions import (
    CallCancelledError,
    JSONServiceError,
    ServiceError,
    StatusCodeError,
)
from azopenai_lib.utils.adapter import AbortScope, CancellableHTTPAdapter
from azopenai_lib.utils.auth import AuthMethod, Authorizer
from azopenai_lib.utils.buffer_pool import BufferPool
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointResolver, EndpointType, TemplateVars
from azopenai_lib.utils.stream import ChunkStream, StreamReader

Payload = Union[Mapping[str, Any], BaseModel, bytes]


def error_from_response(status_code: int, body: bytes) -> ServiceError:
    """
    Build the error for a non-200 answer.

    A body that decodes to a JSON object yields a :class:`JSONServiceError`
    carrying the decoded mapping; anything else yields a
    :class:`StatusCodeError` with the raw text.
    """
    message = body.decode("utf-8", errors="replace")
    try:
        decoded = json.loads(message)
    except ValueError:
        decoded = None
    if isinstance(decoded, dict):
        return JSONServiceError(json=decoded, message=message, status_code=status_code)
    return StatusCodeError(message=message, status_code=status_code)


class HttpRequester:
    """
    Helper for making authenticated POST calls to Azure OpenAI deployments.

    Parameters
    ----------
    resource_name : str
        Name of the Azure OpenAI resource (the ``{resource}`` part of
        ``https://{resource}.openai.azure.com``).
    authorizer : Authorizer
        Credentials attached to every request; validated here.
    session : Optional[requests.Session]
        Session used for dispatch.  When omitted a new session is created
        and a :class:`CancellableHTTPAdapter` without retries is mounted on
        it.  Mount one on an injected session as well for cancellation to
        reach calls that are still waiting for the server.
    api_version : str
        Value of the ``api-version`` query parameter.
    buffer_pool : Optional[BufferPool]
        Pool of request buffers; a private pool is created when omitted.
    logger : Optional[logging.Logger]
        Logger instance; if omitted, a module-level logger is used.
    """

    def __init__(
        self,
        resource_name: str,
        authorizer: Authorizer,
        session: Optional[requests.Session] = None,
        api_version: str = API_VERSION,
        buffer_pool: Optional[BufferPool] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if authorizer.method == AuthMethod.UNKNOWN:
            authorizer = authorizer.validate()
        self.authorizer = authorizer
        self.resolver = EndpointResolver(
            TemplateVars(resource_name=resource_name, api_version=api_version)
        )
        self.buffers = buffer_pool or BufferPool()
        self.logger = logger or logging.getLogger(__name__)

        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            # the service decides on retries, not this client
            adapter = CancellableHTTPAdapter(
                max_retries=Retry(total=0, raise_on_status=False),
                pool_connections=HTTP_POOL_SIZE,
                pool_maxsize=HTTP_POOL_SIZE,
            )
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self.session = session

    def url(self, endpoint_type: EndpointType, deployment_id: str) -> str:
        return self.resolver.resolve(endpoint_type, deployment_id)

    @staticmethod
    def _encode(payload: Payload) -> bytes:
        if isinstance(payload, bytes):
            return payload
        if isinstance(payload, BaseModel):
            return payload.model_dump_json(exclude_none=True).encode("utf-8")
        return json.dumps(payload).encode("utf-8")

    def _dispatch(
        self,
        ctx: CallContext,
        url: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[requests.Response, Callable[[], None]]:
        """
        Authorize and send one POST, returning the open response.

        The response is requested with ``stream=True`` so that its body can
        be read (and aborted) separately.  The request buffer goes back to
        the pool once the request has been sent, whatever the outcome.

        Cancelling ``ctx`` shuts down the connection serving the call, also
        while the server has not answered yet.  The second value returned
        unlinks the call from ``ctx`` and must be called once the response
        body is done with.
        """
        ctx.raise_if_cancelled()

        req = requests.Request(
            method="POST",
            url=url,
            headers={"Content-Type": CONTENT_TYPE_JSON, **(headers or {})},
        )
        prepared = self.session.prepare_request(req)
        self.authorizer.authorize(prepared, ctx)

        timeout = ctx.remaining()
        if timeout is not None and timeout <= 0:
            ctx.cancel("context deadline exceeded")
        ctx.raise_if_cancelled()

        scope = AbortScope()
        remove = ctx.add_cancel_callback(scope.abort)

        def release() -> None:
            remove()
            scope.release()

        buff = self.buffers.get()
        try:
            buff.reset(body)
            prepared.body = buff
            prepared.headers["Content-Length"] = str(len(buff))
            self.logger.debug("POST %s | %d bytes", url, len(body))
            with scope.active():
                resp = self.session.send(prepared, stream=True, timeout=timeout)
        except requests.RequestException as exc:
            release()
            if ctx.cancelled:
                raise CallCancelledError(ctx.reason) from exc
            raise
        except BaseException:
            release()
            raise
        finally:
            self.buffers.put(buff)

        if ctx.cancelled:
            resp.close()
            release()
            raise CallCancelledError(ctx.reason)
        return resp, release

    def _read_body(
        self,
        ctx: CallContext,
        resp: requests.Response,
        release: Callable[[], None],
    ) -> bytes:
        remove = ctx.add_cancel_callback(resp.close)
        try:
            body = resp.content
        except (requests.RequestException, AttributeError, ValueError) as exc:
            if ctx.cancelled:
                raise CallCancelledError(ctx.reason) from exc
            raise
        finally:
            remove()
            resp.close()
            release()
        # a cancelled read can end early without an error
        ctx.raise_if_cancelled()
        return body

    def send(self, ctx: CallContext, url: str, payload: Payload) -> bytes:
        """
        Perform a ``POST`` and return the raw 200 response body.

        Parameters
        ----------
        ctx : CallContext
            Cancellation and deadline of the call.
        url : str
            Endpoint URL, usually from :meth:`url`.
        payload : Mapping | BaseModel | bytes
            JSON-serialisable request body.

        Returns
        -------
        bytes
            The undecoded response body.

        Raises
        ------
        StatusCodeError, JSONServiceError
            For any non-200 status.
        CallCancelledError
            If ``ctx`` is cancelled before or during the call.
        requests.RequestException
            Transport failures, unchanged.
        """
        resp, release = self._dispatch(ctx, url, self._encode(payload))
        body = self._read_body(ctx, resp, release)
        if resp.status_code != 200:
            err = error_from_response(resp.status_code, body)
            self.logger.warning("POST %s -> HTTP %d", url, resp.status_code)
            raise err
        return body

    def stream(
        self,
        ctx: CallContext,
        url: str,
        payload: Payload,
        decoder: Optional[Callable[[bytes], Any]] = None,
        capacity: int = STREAM_QUEUE_SIZE,
    ) -> ChunkStream:
        """
        Perform a streaming ``POST`` and return a :class:`ChunkStream`.

        ``"stream": true`` is added to the payload.  A non-200 status yields
        a stream whose only message is the structured error; otherwise a
        background :class:`StreamReader` feeds the stream until ``[DONE]``,
        a read error, or cancellation of ``ctx`` (or of the stream itself).

        Errors raised before the response headers arrive (authorization, a
        cancelled context, transport failures) are raised directly.
        """
        if isinstance(payload, bytes):
            body = json.loads(payload)
        elif isinstance(payload, BaseModel):
            body = payload.model_dump(mode="json", exclude_none=True)
        else:
            body = dict(payload)
        body["stream"] = True

        stream_ctx = ctx.child()
        try:
            resp, release = self._dispatch(
                stream_ctx,
                url,
                self._encode(body),
                headers={"Accept": "text/event-stream"},
            )
            if resp.status_code != 200:
                body_bytes = self._read_body(stream_ctx, resp, release)
        except BaseException:
            stream_ctx.cancel("stream request failed")
            raise

        if resp.status_code != 200:
            self.logger.warning("POST %s -> HTTP %d", url, resp.status_code)
            return ChunkStream.failed(
                stream_ctx, error_from_response(resp.status_code, body_bytes)
            )

        stream = ChunkStream(stream_ctx, capacity=capacity)
        return StreamReader(
            resp,
            stream,
            decoder=decoder,
            chunk_size=STREAM_CHUNK_SIZE,
            logger=self.logger,
            release=release,
        ).start()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()
