"""
Service layer shared by the chat, completions and embeddings endpoints.

The module defines a small abstract interface that knows how to POST a
request model to one endpoint type of one deployment through a shared
``HttpRequester``.  Concrete subclasses bind the endpoint type, the
parameter model and the response models, and turn caller inputs into a
request.
"""

import abc
import logging
from typing import Any, Callable, Optional, Type

from azopenai_lib.data_models.base_model import BaseModelOptions, BaseResponseModel
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.endpoints import EndpointType
from azopenai_lib.utils.http import HttpRequester
from azopenai_lib.utils.normalize import decode_response
from azopenai_lib.utils.stream import ChunkStream


class BaseServiceInterface(abc.ABC):
    """
    Abstract base class for endpoint service wrappers.

    Sub-classes must set ``endpoint_type``, ``params_cls`` (optional call
    parameters) and ``response_cls``; streaming services also set
    ``chunk_cls``, the model of one streamed ``data: `` message.

    Default parameters stored with :meth:`set_params` apply to every call
    that does not pass its own ``params``.  A per-call ``deployment_id``
    overrides the one the service was created for.
    """

    endpoint_type: EndpointType = None
    params_cls: Type[BaseModelOptions] = None
    response_cls: Type[BaseResponseModel] = None
    chunk_cls: Optional[Type[BaseResponseModel]] = None

    def __init__(
        self,
        http: HttpRequester,
        deployment_id: str,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Parameters
        ----------
        http : HttpRequester
            Shared transport (auth, session, URL cache, buffer pool).
        deployment_id : str
            Deployment used when a call does not name another one.
        logger : Optional[logging.Logger]
            Logger instance used for debugging.
        """
        self.http = http
        self.deployment_id = deployment_id
        self.logger = logger or logging.getLogger(__name__)
        self._params = self.params_cls()

    @property
    def params(self) -> BaseModelOptions:
        return self._params

    def set_params(self, params: BaseModelOptions) -> None:
        """Store default parameters for later calls (a copy is kept)."""
        if not isinstance(params, self.params_cls):
            params = self.params_cls.model_validate(params)
        self._params = params.model_copy(deep=True)

    def _call_params(self, params: Optional[BaseModelOptions]) -> BaseModelOptions:
        if params is None:
            return self._params
        if not isinstance(params, self.params_cls):
            params = self.params_cls.model_validate(params)
        return params

    def _url(self, deployment_id: Optional[str]) -> str:
        return self.http.url(self.endpoint_type, deployment_id or self.deployment_id)

    def _post(
        self,
        ctx: Optional[CallContext],
        request: BaseModelOptions,
        deployment_id: Optional[str] = None,
    ) -> BaseResponseModel:
        ctx = ctx or CallContext.background()
        raw = self.http.send(ctx, self._url(deployment_id), request.to_payload())
        return decode_response(raw, self.response_cls)

    def _stream(
        self,
        ctx: Optional[CallContext],
        request: BaseModelOptions,
        deployment_id: Optional[str] = None,
    ) -> ChunkStream:
        ctx = ctx or CallContext.background()
        return self.http.stream(
            ctx,
            self._url(deployment_id),
            request.to_payload(),
            decoder=self._chunk_decoder(),
        )

    def _chunk_decoder(self) -> Callable[[bytes], Any]:
        chunk_cls = self.chunk_cls or self.response_cls

        def _decode(raw: bytes) -> Any:
            return decode_response(raw, chunk_cls)

        return _decode

    @abc.abstractmethod
    def build_request(self, inputs: Any, params: BaseModelOptions) -> BaseModelOptions:
        """Turn the caller's inputs and the effective parameters into a request."""
        pass
