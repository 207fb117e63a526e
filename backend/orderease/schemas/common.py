from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, Field, PlainSerializer

from orderease.models.base import as_utc

# Fixed two-decimal amounts, emitted as JSON numbers.
Money = Annotated[Decimal, PlainSerializer(lambda v: float(v), return_type=float, when_used="json")]

# Timestamps read back from SQLite come without tzinfo.
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

MAX_PAGE_SIZE = 100

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    data: list[T]

    class Config:
        populate_by_name = True


class MessageOut(BaseModel):
    message: str
