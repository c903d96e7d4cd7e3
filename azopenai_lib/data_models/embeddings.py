"""
Request and response schemas of the embeddings endpoint
(``/openai/deployments/{deployment}/embeddings``).
"""

from typing import ClassVar, List, Optional, Tuple

from pydantic import BaseModel

from azopenai_lib.data_models.base_model import BaseModelOptions, BaseResponseModel
from azopenai_lib.exceptions import ValidationError

# Upper bound on the number of inputs accepted in one call.
MAX_EMBEDDING_INPUTS = 2048


class EmbeddingsParams(BaseModelOptions):
    """
    Optional parameters of an embeddings call.

    Attributes
    ----------
    user : Optional[str]
        End-user identifier used for abuse monitoring.
    input_type : Optional[str]
        Embedding search type (sent as ``input_type``).
    model : Optional[str]
        Model id.
    """

    user: Optional[str] = None
    input_type: Optional[str] = None
    model: Optional[str] = None


class EmbeddingsRequest(EmbeddingsParams):
    input: List[str]

    def validate_input(self) -> "EmbeddingsRequest":
        if not self.input:
            raise ValidationError("input is required")
        if len(self.input) > MAX_EMBEDDING_INPUTS:
            raise ValidationError(
                f"input cannot have more than {MAX_EMBEDDING_INPUTS} entries"
            )
        return self


class EmbeddingData(BaseModel):
    object: str = "embedding"
    embedding: List[float] = []
    index: int = 0


class EmbeddingsUsage(BaseModel):
    prompt_tokens: int = 0
    total_tokens: int = 0


class EmbeddingsResponse(BaseResponseModel):
    """Decoded embeddings answer; ``data`` is returned sorted by ``index``."""

    indexed_fields: ClassVar[Tuple[str, ...]] = ("data",)

    object: str = ""
    model: str = ""
    data: List[EmbeddingData] = []
    usage: Optional[EmbeddingsUsage] = None
