import json
import threading
import time

import pytest
import requests

from azopenai_lib.exceptions import (
    CallCancelledError,
    ConfigurationError,
    JSONServiceError,
    StatusCodeError,
)
from azopenai_lib.utils.auth import Authorizer
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointType
from azopenai_lib.utils.http import HttpRequester, error_from_response

from conftest import StubCredential, make_response

URL = "https://test.openai.azure.com/openai/deployments/d/chat/completions?api-version=2023-05-15"


def test_send_returns_raw_body_and_posts_json(requester_factory):
    requester, session = requester_factory(make_response(200, b'{"ok": true}'))

    body = requester.send(CallContext.background(), URL, {"messages": []})

    assert body == b'{"ok": true}'
    sent = session.sent[0]
    assert sent.method == "POST"
    assert sent.url == URL
    assert sent.headers["api-key"] == "key-123"
    assert sent.headers["Content-Type"] == "application/json"
    assert sent.headers["Content-Length"] == str(len(session.bodies[0]))
    assert json.loads(session.bodies[0]) == {"messages": []}
    assert session.kwargs[0]["timeout"] is None
    assert session.kwargs[0]["stream"] is True


def test_send_uses_token_credential(requester_factory):
    cred = StubCredential(token="abc")
    requester, session = requester_factory(
        make_response(200, b"{}"), authorizer=Authorizer(credential=cred)
    )
    requester.send(CallContext.background(), URL, {})
    assert session.sent[0].headers["Authorization"] == "Bearer abc"


def test_deadline_becomes_request_timeout(requester_factory):
    requester, session = requester_factory(make_response(200, b"{}"))
    with CallContext(timeout=30) as ctx:
        requester.send(ctx, URL, {})
    assert 0 < session.kwargs[0]["timeout"] <= 30


def test_json_error_body_is_decoded(requester_factory):
    payload = {"error": {"code": "DeploymentNotFound", "message": "no such thing"}}
    requester, _ = requester_factory(make_response(404, payload))

    with pytest.raises(JSONServiceError) as exc_info:
        requester.send(CallContext.background(), URL, {})

    err = exc_info.value
    assert err.status_code == 404
    assert err.json == payload
    assert err.code == "DeploymentNotFound"
    assert json.loads(str(err)) == payload


def test_plain_error_body_is_kept_raw(requester_factory):
    requester, _ = requester_factory(make_response(502, "upstream <b>gone</b>"))

    with pytest.raises(StatusCodeError) as exc_info:
        requester.send(CallContext.background(), URL, {})

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "upstream <b>gone</b>"
    assert not isinstance(exc_info.value, JSONServiceError)


def test_json_that_is_not_an_object_is_a_status_error():
    err = error_from_response(400, b"[1, 2]")
    assert isinstance(err, StatusCodeError)
    assert err.message == "[1, 2]"


def test_non_200_success_codes_are_errors_too(requester_factory):
    requester, _ = requester_factory(make_response(201, b"{}"))
    with pytest.raises(JSONServiceError):
        requester.send(CallContext.background(), URL, {})


def test_transport_errors_propagate_and_buffer_is_returned(requester_factory):
    boom = requests.ConnectionError("connection refused")
    requester, _ = requester_factory(boom)

    with pytest.raises(requests.ConnectionError) as exc_info:
        requester.send(CallContext.background(), URL, {"a": 1})

    assert exc_info.value is boom
    assert len(requester.buffers) == 1
    assert len(requester.buffers.get()) == 0


def test_buffer_is_returned_after_success(requester_factory):
    requester, _ = requester_factory(
        make_response(200, b"{}"), make_response(200, b"{}")
    )
    requester.send(CallContext.background(), URL, {"a": 1})
    requester.send(CallContext.background(), URL, {"a": 2})
    assert len(requester.buffers) == 1


def test_cancelled_context_sends_nothing(requester_factory):
    requester, session = requester_factory(make_response(200, b"{}"))
    ctx = CallContext()
    ctx.cancel()
    with pytest.raises(CallCancelledError):
        requester.send(ctx, URL, {})
    assert session.sent == []


def test_url_is_resolved_through_cache(requester_factory):
    requester, _ = requester_factory()
    assert requester.url(EndpointType.CHAT, "d") == URL
    assert requester.url(EndpointType.CHAT, "d") is requester.url(EndpointType.CHAT, "d")


def test_requester_validates_authorizer():
    with pytest.raises(ConfigurationError):
        HttpRequester(resource_name="test", authorizer=Authorizer())


def test_pydantic_payloads_drop_unset_fields(requester_factory):
    from azopenai_lib.data_models.chat import ChatRequest

    requester, session = requester_factory(make_response(200, b"{}"))
    requester.send(
        CallContext.background(),
        URL,
        ChatRequest(messages=[{"role": "user", "content": "hi"}]),
    )
    assert json.loads(session.bodies[0]) == {
        "messages": [{"role": "user", "content": "hi"}]
    }


class CancellingRaw:
    """Body that cancels `ctx` on its first read and still returns data."""

    def __init__(self, ctx, data):
        self.ctx = ctx
        self.data = data

    def read(self, amt=None):
        self.ctx.cancel("cancelled mid-read")
        data, self.data = self.data, b""
        return data

    def close(self):
        pass


def test_cancel_while_waiting_for_headers_raises(requester_factory):
    requester, session = requester_factory(make_response(200, b'{"ok": true}'))
    ctx = CallContext()
    session.on_send = lambda request: ctx.cancel("cancelled in flight")

    with pytest.raises(CallCancelledError) as exc_info:
        requester.send(ctx, URL, {})

    assert "in flight" in str(exc_info.value)
    assert len(requester.buffers) == 1


def test_cancel_during_body_read_raises(requester_factory):
    ctx = CallContext()
    raw = CancellingRaw(ctx, b'{"ok": true}')
    requester, _ = requester_factory(make_response(200, b"", raw=raw))

    with pytest.raises(CallCancelledError):
        requester.send(ctx, URL, {})


def test_expired_deadline_is_cancelled_before_sending(requester_factory):
    requester, session = requester_factory(make_response(200, b"{}"))
    with CallContext(timeout=30) as ctx:
        ctx.deadline = time.monotonic() - 1
        with pytest.raises(CallCancelledError):
            requester.send(ctx, URL, {})

    assert session.sent == []
    assert ctx.cancelled
    assert "deadline" in ctx.reason


def _local_requester():
    requester = HttpRequester(resource_name="test", authorizer=Authorizer(api_key="k"))
    requester.session.trust_env = False
    return requester


def test_cancel_reaches_send_waiting_on_slow_server(slow_server):
    requester = _local_requester()
    ctx = CallContext()
    timer = threading.Timer(0.3, ctx.cancel)
    timer.start()

    started = time.monotonic()
    try:
        with pytest.raises(CallCancelledError):
            requester.send(ctx, slow_server, {"messages": []})
    finally:
        timer.cancel()
        requester.close()

    assert time.monotonic() - started < 3


def test_cancel_reaches_stream_waiting_on_slow_server(slow_server):
    requester = _local_requester()
    ctx = CallContext()
    timer = threading.Timer(0.3, ctx.cancel)
    timer.start()

    started = time.monotonic()
    try:
        with pytest.raises(CallCancelledError):
            requester.stream(ctx, slow_server, {"messages": []})
    finally:
        timer.cancel()
        requester.close()

    assert time.monotonic() - started < 3
