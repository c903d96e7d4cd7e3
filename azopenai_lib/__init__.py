from azopenai_lib.client import AzOpenAIClient
from azopenai_lib.utils.auth import Authorizer, TokenRequestOptions
from azopenai_lib.utils.context import CallContext
from azopenai_lib.utils.stream import ChunkStream, StreamChunk
from azopenai_lib.exceptions import (
    AzOpenAIError,
    CallCancelledError,
    ConfigurationError,
    JSONServiceError,
    ResponseDecodeError,
    ServiceError,
    StatusCodeError,
    StreamError,
    ValidationError,
)

__all__ = [
    "AzOpenAIClient",
    "Authorizer",
    "TokenRequestOptions",
    "CallContext",
    "ChunkStream",
    "StreamChunk",
    "AzOpenAIError",
    "CallCancelledError",
    "ConfigurationError",
    "JSONServiceError",
    "ResponseDecodeError",
    "ServiceError",
    "StatusCodeError",
    "StreamError",
    "ValidationError",
]
