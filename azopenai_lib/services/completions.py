"""Text completions service."""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from azopenai_lib.data_models.completions import (
    CompletionsParams,
    CompletionsRequest,
    CompletionsResponse,
)
from azopenai_lib.services.service_interface import BaseServiceInterface
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointType
from azopenai_lib.utils.stream import ChunkStream


@dataclass
class CompletionsResult:
    text: List[str]
    rest_req: Optional[CompletionsRequest] = None
    rest_resp: Optional[CompletionsResponse] = None


class CompletionsService(BaseServiceInterface):
    endpoint_type = EndpointType.COMPLETIONS
    params_cls = CompletionsParams
    response_cls = CompletionsResponse

    def build_request(
        self, inputs: Sequence[str], params: CompletionsParams
    ) -> CompletionsRequest:
        return CompletionsRequest(
            prompt=list(inputs), **params.model_dump(exclude_none=True)
        )

    def call(
        self,
        prompts: Sequence[str],
        ctx: Optional[CallContext] = None,
        params: Optional[CompletionsParams] = None,
        deployment_id: Optional[str] = None,
        include_req: bool = False,
        include_resp: bool = False,
    ) -> CompletionsResult:
        req = self.build_request(prompts, self._call_params(params))
        resp = self._post(ctx, req, deployment_id)

        result = CompletionsResult(text=[c.text for c in resp.choices])
        if include_req:
            result.rest_req = req
        if include_resp:
            result.rest_resp = resp
        return result

    def stream(
        self,
        prompts: Sequence[str],
        ctx: Optional[CallContext] = None,
        params: Optional[CompletionsParams] = None,
        deployment_id: Optional[str] = None,
    ) -> ChunkStream:
        req = self.build_request(prompts, self._call_params(params))
        return self._stream(ctx, req, deployment_id)
