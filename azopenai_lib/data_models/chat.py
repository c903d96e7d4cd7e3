"""
Request and response schemas of the chat completions endpoint
(``/openai/deployments/{deployment}/chat/completions``).
"""

import enum
from datetime import datetime
from typing import ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel

from azopenai_lib.data_models.base_model import BaseModelOptions, BaseResponseModel


class Role(str, enum.Enum):
    """Role of the author of a message."""

    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


class SendMsg(BaseModelOptions):
    """
    Message sent to the chat API.

    Attributes
    ----------
    role : Role
        Author of the message.
    content : str
        Text of the message.
    name : Optional[str]
        Name of the user in the chat.
    """

    role: Role
    content: str
    name: Optional[str] = None


class ChatParams(BaseModelOptions):
    """
    Optional generation parameters of a chat call.

    Every field left as ``None`` is omitted from the request, so the service
    default applies.  Use :meth:`defaults` to start from the values the
    service documents.

    Attributes
    ----------
    stop : Optional[List[str]]
        Up to four sequences where generation stops.
    logit_bias : Optional[Dict[str, float]]
        Token id to bias (-100 .. 100) mapping.
    user : Optional[str]
        End-user identifier used for abuse monitoring.
    n : Optional[int]
        Number of completions per prompt (1 .. 128).
    max_tokens : Optional[int]
        Maximum number of generated tokens.
    temperature : Optional[float]
        Sampling temperature; alter this or ``top_p``, not both.
    top_p : Optional[float]
        Nucleus sampling probability mass.
    presence_penalty : Optional[float]
        -2.0 .. 2.0; positive values favour new topics.
    frequency_penalty : Optional[float]
        -2.0 .. 2.0; positive values discourage verbatim repetition.
    """

    stop: Optional[List[str]] = None
    logit_bias: Optional[Dict[str, float]] = None
    user: Optional[str] = None
    n: Optional[int] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None

    @classmethod
    def defaults(cls) -> "ChatParams":
        return cls(temperature=1, top_p=1, n=1, max_tokens=4096)


class ChatRequest(ChatParams):
    messages: List[SendMsg]
    stream: Optional[bool] = None


class RecvMsg(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChatChoice(BaseModel):
    index: int = 0
    message: RecvMsg = RecvMsg()
    finish_reason: Optional[str] = None


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatResponse(BaseResponseModel):
    """Decoded non-streamed chat answer; ``created`` is parsed from unix seconds."""

    indexed_fields: ClassVar[Tuple[str, ...]] = ("choices",)

    id: str = ""
    object: str = ""
    created: Optional[datetime] = None
    model: str = ""
    choices: List[ChatChoice] = []
    usage: Optional[Usage] = None


class ChatDelta(BaseModel):
    role: Optional[str] = None
    content: Optional[str] = None


class ChatChunkChoice(BaseModel):
    index: int = 0
    delta: ChatDelta = ChatDelta()
    finish_reason: Optional[str] = None


class ChatChunk(BaseResponseModel):
    """One ``data: `` message of a streamed chat answer."""

    indexed_fields: ClassVar[Tuple[str, ...]] = ("choices",)

    id: str = ""
    object: str = ""
    created: Optional[datetime] = None
    model: str = ""
    choices: List[ChatChunkChoice] = []
