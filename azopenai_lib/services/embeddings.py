"""
Embeddings service.

Vectors are returned in input order: ``result.results[i]`` is the
embedding of ``texts[i]``.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from azopenai_lib.data_models.embeddings import (
    EmbeddingsParams,
    EmbeddingsRequest,
    EmbeddingsResponse,
)
from azopenai_lib.services.service_interface import BaseServiceInterface
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointType


@dataclass
class EmbeddingsResult:
    results: List[List[float]]
    rest_req: Optional[EmbeddingsRequest] = None
    rest_resp: Optional[EmbeddingsResponse] = None


class EmbeddingsService(BaseServiceInterface):
    endpoint_type = EndpointType.EMBEDDINGS
    params_cls = EmbeddingsParams
    response_cls = EmbeddingsResponse

    def build_request(
        self, inputs: Sequence[str], params: EmbeddingsParams
    ) -> EmbeddingsRequest:
        return EmbeddingsRequest(
            input=list(inputs), **params.model_dump(exclude_none=True)
        ).validate_input()

    def call(
        self,
        texts: Sequence[str],
        ctx: Optional[CallContext] = None,
        params: Optional[EmbeddingsParams] = None,
        deployment_id: Optional[str] = None,
        remove_newlines: bool = False,
        include_req: bool = False,
        include_resp: bool = False,
    ) -> EmbeddingsResult:
        """
        Embed ``texts``.

        ``remove_newlines`` replaces ``\\n`` with a space, which gives better
        results for anything that is not source code.  The caller's sequence
        is never modified.

        Raises
        ------
        ValidationError
            When ``texts`` is empty or longer than 2048 entries; nothing is
            sent in that case.
        """
        if remove_newlines:
            texts = [t.replace("\n", " ") for t in texts]

        req = self.build_request(texts, self._call_params(params))
        resp = self._post(ctx, req, deployment_id)

        result = EmbeddingsResult(results=[list(d.embedding) for d in resp.data])
        if include_req:
            result.rest_req = req
        if include_resp:
            result.rest_resp = resp
        return result
