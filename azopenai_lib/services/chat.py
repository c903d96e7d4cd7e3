"""
Chat completions service.

Example::

    chat = client.chat("gpt-35-turbo")
    result = chat.call([{"role": "user", "content": "Tell me a joke"}])
    print(result.text[0])
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Union

from azopenai_lib.data_models.chat import (
    ChatChunk,
    ChatParams,
    ChatRequest,
    ChatResponse,
    SendMsg,
)
from azopenai_lib.services.service_interface import BaseServiceInterface
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointType
from azopenai_lib.utils.stream import ChunkStream

Messages = Sequence[Union[SendMsg, Dict[str, Any]]]


@dataclass
class ChatResult:
    """
    Answer of a chat call.

    Attributes
    ----------
    text : List[str]
        Content of every returned choice, in choice index order.
    rest_req, rest_resp
        Raw request and decoded response, set only with ``include_req`` and
        ``include_resp`` respectively.
    """

    text: List[str]
    rest_req: Optional[ChatRequest] = None
    rest_resp: Optional[ChatResponse] = None


class ChatService(BaseServiceInterface):
    endpoint_type = EndpointType.CHAT
    params_cls = ChatParams
    response_cls = ChatResponse
    chunk_cls = ChatChunk

    def build_request(self, inputs: Messages, params: ChatParams) -> ChatRequest:
        return ChatRequest(
            messages=list(inputs), **params.model_dump(exclude_none=True)
        )

    def call(
        self,
        messages: Messages,
        ctx: Optional[CallContext] = None,
        params: Optional[ChatParams] = None,
        deployment_id: Optional[str] = None,
        include_req: bool = False,
        include_resp: bool = False,
    ) -> ChatResult:
        req = self.build_request(messages, self._call_params(params))
        resp = self._post(ctx, req, deployment_id)

        result = ChatResult(text=[c.message.content or "" for c in resp.choices])
        if include_req:
            result.rest_req = req
        if include_resp:
            result.rest_resp = resp
        return result

    def stream(
        self,
        messages: Messages,
        ctx: Optional[CallContext] = None,
        params: Optional[ChatParams] = None,
        deployment_id: Optional[str] = None,
    ) -> ChunkStream:
        """
        Stream the answer; every payload of the returned stream is a
        :class:`~azopenai_lib.data_models.chat.ChatChunk`.
        """
        req = self.build_request(messages, self._call_params(params))
        return self._stream(ctx, req, deployment_id)
