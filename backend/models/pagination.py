"""
Pagination window metadata for bounded listing queries.
"""

from pydantic import Field

from models.base import BaseSchema


class PaginationMeta(BaseSchema):
    """Adjacent-page reachability for a listing.

    This is a sliding-window indicator, not a page count: it only tells the
    caller whether a previous/next window exists and which offset to request.
    """

    limit: int
    current_offset: int = Field(alias="currentOffset")
    next_offset: int | None = Field(default=None, alias="nextOffset")
    prev_offset: int | None = Field(default=None, alias="prevOffset")

    @classmethod
    def calculate(cls, offset: int, limit: int, total_rows: int) -> "PaginationMeta":
        """
        Derive the window around ``offset``.

        Args:
            offset: Requested offset (>= 0)
            limit: Window size (> 0)
            total_rows: Number of records matching the filter, ignoring the window

        Returns:
            PaginationMeta with next/prev offsets, None when no such window exists
        """
        offset = int(offset)
        limit = int(limit)

        next_offset: int | None = offset + limit
        if next_offset >= total_rows:
            next_offset = None

        prev_offset: int | None = offset - limit
        if prev_offset < 0:
            prev_offset = None

        return cls(
            limit=limit,
            current_offset=offset,
            next_offset=next_offset,
            prev_offset=prev_offset,
        )
