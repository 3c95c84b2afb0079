import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for wire models: camelCase JSON, snake_case attributes.

    Accepts either spelling on input and reads ORM rows directly.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginationMeta(CamelModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_page: int = Field(..., ge=0)

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, total_page=math.ceil(total / (limit or 1)))


class Page(CamelModel, Generic[T]):
    """One page of a listing plus the metadata needed to paginate it."""
    items: list[T]
    meta: PaginationMeta


class ApiResponse(CamelModel, Generic[T]):
    """Success envelope returned by every endpoint."""
    success: bool = True
    status_code: int = 200
    message: str
    data: T | None = None
    meta: PaginationMeta | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    status_code: int
    message: str
    error_details: Any | None = None
