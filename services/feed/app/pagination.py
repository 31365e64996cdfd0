"""Pagination utilities shared by the feed and explore endpoints.

Cursors are opaque to clients: base64 of the decimal offset into a stable,
ordered result set. Repeating a request with the same cursor returns the same
page as long as the underlying rows do not change.
"""

import base64
import binascii
from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class CursorPage(BaseModel, Generic[T]):
    """Offset-cursor page.

    `next_cursor` is null exactly when ``offset + limit >= total``.
    """

    items: list[T]
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for the next page. Null when no more pages.",
    )
    has_more: bool = Field(description="True when additional pages exist.")
    total: int = Field(description="Total number of items in the ordered set.")


def encode_cursor(offset: int) -> str:
    """Encode a non-negative offset as a base64 cursor string."""
    if offset < 0:
        raise ValueError("offset must be non-negative")
    return base64.b64encode(str(offset).encode()).decode()


def decode_cursor(cursor: str) -> int:
    """Decode a cursor string back to its offset.

    Raises ValueError on malformed cursors; callers fall back to offset 0.
    """
    try:
        raw = base64.b64decode(cursor.encode(), validate=True).decode()
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"Invalid cursor: {exc}") from exc
    if not (raw.isascii() and raw.isdigit()):
        raise ValueError(f"Invalid cursor: {raw!r} is not an offset")
    return int(raw)


def next_cursor(offset: int, limit: int, total: int) -> str | None:
    end = offset + limit
    return None if end >= total else encode_cursor(end)


def paginate(items: Sequence[T], offset: int, limit: int) -> CursorPage[T]:
    """Slice ``items[offset:offset + limit]`` and compute the next cursor."""
    offset = max(0, offset)
    limit = max(0, limit)
    total = len(items)
    cursor = next_cursor(offset, limit, total)
    return CursorPage(
        items=list(items[offset : offset + limit]),
        next_cursor=cursor,
        has_more=cursor is not None,
        total=total,
    )


def dedupe_by_id(
    items: Iterable[T],
    key: Callable[[T], Hashable] = lambda item: item.id,  # type: ignore[attr-defined]
) -> list[T]:
    """Drop later occurrences of an id; order is preserved and the first one wins."""
    seen: set[Hashable] = set()
    out: list[T] = []
    for item in items:
        k = key(item)
        if k in seen:
            continue
        seen.add(k)
        out.append(item)
    return out
