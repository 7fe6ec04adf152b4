"""Shared / generic schemas."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope returned for every failed request."""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None


class SuccessResponse(BaseModel):
    """Generic success wrapper."""

    success: bool = True
    message: str = "ok"
    data: dict[str, Any] | None = None


class PageLink(BaseModel):
    page: int
    limit: int


class Pagination(BaseModel):
    """Links to the neighbouring pages, absent at either end."""

    next: PageLink | None = None
    prev: PageLink | None = None

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        start = (page - 1) * limit
        return cls(
            next=PageLink(page=page + 1, limit=limit) if start + limit < total else None,
            prev=PageLink(page=page - 1, limit=limit) if start > 0 else None,
        )
