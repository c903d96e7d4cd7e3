"""
Base model definitions shared by every endpoint schema.

Request models drop unset (``None``) fields when dumped, matching the
optional parameters of the REST API.  Response models ignore unknown keys
and name the list fields that must be re-sorted by ``index``.
"""

from typing import Any, ClassVar, Dict, Tuple

from pydantic import BaseModel, ConfigDict


class BaseModelOptions(BaseModel):
    """Common behaviour of request payloads and call parameters."""

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)


class BaseResponseModel(BaseModel):
    """
    Common behaviour of decoded responses.

    Attributes
    ----------
    indexed_fields : Tuple[str, ...]
        Names of list fields whose items carry an ``index`` and must be
        returned in ascending index order.
    """

    model_config = ConfigDict(extra="ignore")

    indexed_fields: ClassVar[Tuple[str, ...]] = ()
