"""
Shared schema building blocks.

API payloads use camelCase keys on the wire and snake_case attributes in
Python; money is carried as ``Decimal`` and rendered as a JSON number.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from storefront.database.base import ensure_utc

Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class CamelModel(BaseModel):
    """Base schema with camelCase aliases that also accepts field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class ErrorResponse(CamelModel):
    """Body of every failed request."""

    success: bool = False
    error: str
    message: str
    request_id: Optional[str] = None
