"""Response envelope and pagination schemas shared by all endpoints."""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Uniform envelope: every response carries a success flag and a message."""

    success: bool = True
    message: str = ""
    data: T | None = None


class Pagination(BaseModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool
    next_page: int | None = None
    prev_page: int | None = None

    @classmethod
    def build(cls, page: int, limit: int, total_count: int) -> "Pagination":
        total_pages = -(-total_count // limit) if total_count else 0
        has_next = page < total_pages
        has_prev = page > 1
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            limit=limit,
            has_next_page=has_next,
            has_prev_page=has_prev,
            next_page=page + 1 if has_next else None,
            prev_page=page - 1 if has_prev else None,
        )
