"""
Decoding of endpoint responses.

The service does not guarantee that list-valued results (``choices``,
embedding ``data``) come back in request order, so every decoded response
has those lists re-sorted by their ``index`` field before it reaches the
caller.  Embedding vector *i* therefore always belongs to input text *i*.
"""

from typing import Any, Iterable, List, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from azopenai_lib.exceptions import ResponseDecodeError

M = TypeVar("M", bound=BaseModel)


def _index_of(item: Any) -> int:
    if isinstance(item, dict):
        return item.get("index", 0)
    return getattr(item, "index", 0)


def sort_by_index(items: Iterable[Any]) -> List[Any]:
    """Return ``items`` sorted ascending by ``index`` (stable)."""
    return sorted(items, key=_index_of)


def normalize(model: M) -> M:
    """Sort, in place, every list field the model declares as indexed."""
    for name in getattr(model, "indexed_fields", ()):
        value = getattr(model, name, None)
        if value:
            setattr(model, name, sort_by_index(value))
    return model


def decode_response(raw: bytes, model_cls: Type[M]) -> M:
    """
    Parse ``raw`` into ``model_cls`` and restore index order.

    Raises
    ------
    ResponseDecodeError
        If the body is not valid JSON or does not match the model.
    """
    try:
        model = model_cls.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise ResponseDecodeError(
            f"problem decoding {model_cls.__name__} response: {exc}"
        ) from exc
    return normalize(model)
