"""Response envelopes shared by every router."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from edu_gateway.domain.errors import EduGatewayError

T = TypeVar("T")


class SuccessResponse(BaseModel):
    """Acknowledgement for operations without a body, such as deletes."""

    model_config = ConfigDict(extra="forbid")

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Body of every failed request.

    Attributes:
        error: Machine code of the error kind (e.g. "invalid_credentials")
        message: Short human description
        detail: Structured context, such as the offending field
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [
                {
                    "error": "unauthorized",
                    "message": "You are not a SuperAdmin or a Manager",
                    "detail": None,
                },
                {
                    "error": "validation_error",
                    "message": "error while validating phone number 123",
                    "detail": {"field": "phone"},
                },
            ]
        },
    )

    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Any = Field(default=None, description="Additional error context")

    @classmethod
    def from_error(cls, error: EduGatewayError) -> ErrorResponse:
        return cls(error=error.code, message=error.message, detail=error.detail)


class PaginationMeta(BaseModel):
    """Position of a page within a search result."""

    model_config = ConfigDict(extra="forbid")

    total: int = Field(..., ge=0, description="Matching principals")
    page: int = Field(..., ge=1, description="Page number, 1-based")
    page_size: int = Field(..., ge=1, description="Requested limit")
    total_pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> PaginationMeta:
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of principals (or report rows) plus its position."""

    model_config = ConfigDict(extra="forbid")

    items: list[T] = Field(default_factory=list)
    pagination: PaginationMeta
