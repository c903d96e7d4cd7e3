"""
Request and response schemas of the completions endpoint
(``/openai/deployments/{deployment}/completions``).
"""

from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel

from azopenai_lib.data_models.base_model import BaseModelOptions, BaseResponseModel
from azopenai_lib.data_models.chat import Usage


class CompletionsParams(BaseModelOptions):
    """
    Optional generation parameters of a completions call.

    Attributes
    ----------
    suffix : Optional[str]
        Text that comes after the inserted completion.
    max_tokens, temperature, top_p, n, stop, logit_bias, user,
    presence_penalty, frequency_penalty
        Same meaning as in :class:`~azopenai_lib.data_models.chat.ChatParams`.
    logprobs : Optional[int]
        Include the log probabilities of this many most likely tokens.
    echo : Optional[bool]
        Echo back the prompt in addition to the completion.
    best_of : Optional[int]
        Generate this many completions server side and return the best.
    """

    suffix: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    logit_bias: Optional[Dict[str, float]] = None
    user: Optional[str] = None
    n: Optional[int] = None
    logprobs: Optional[int] = None
    echo: Optional[bool] = None
    stop: Optional[List[str]] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    best_of: Optional[int] = None

    @classmethod
    def defaults(cls) -> "CompletionsParams":
        return cls(max_tokens=16, temperature=1, top_p=1, n=1)


class CompletionsRequest(CompletionsParams):
    prompt: List[str]
    stream: Optional[bool] = None


class CompletionChoice(BaseModel):
    text: str = ""
    index: int = 0
    logprobs: Optional[Dict[str, Any]] = None
    finish_reason: Optional[str] = None


class CompletionsResponse(BaseResponseModel):
    """
    Decoded completions answer.

    Streamed completions use the same shape, one object per ``data: `` line.
    """

    indexed_fields: ClassVar[Tuple[str, ...]] = ("choices",)

    id: str = ""
    object: str = ""
    created: Optional[datetime] = None
    model: str = ""
    choices: List[CompletionChoice] = []
    usage: Optional[Usage] = None
