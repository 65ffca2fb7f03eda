"""
Page-size clamping and keyset cursors shared by every list endpoint.

Lists are ordered newest first on (created_at, id). A cursor is the
url-safe base64 of the last row's ``[created_at, id]`` pair; the next page
starts strictly after it.
"""
import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, or_

from mission_control.config import settings
from mission_control.errors import ValidationError


def clamp_limit(limit: Optional[int], default: Optional[int] = None) -> int:
    """Bound a requested page size to [1, MAX_PAGE_SIZE]."""
    if limit is None:
        limit = default if default is not None else settings.DEFAULT_PAGE_SIZE
    return max(1, min(int(limit), settings.MAX_PAGE_SIZE))


def encode_cursor(created_at: datetime, row_id: int) -> str:
    raw = json.dumps([created_at.isoformat(), row_id]).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(cursor: str) -> Tuple[datetime, int]:
    try:
        created_at, row_id = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        return datetime.fromisoformat(created_at), int(row_id)
    except (binascii.Error, ValueError, TypeError, UnicodeError):
        raise ValidationError(f"Malformed cursor: {cursor!r}")


def newest_first(query, model):
    return query.order_by(model.created_at.desc(), model.id.desc())


def after_cursor(query, model, cursor: Optional[str]):
    """Restrict a newest-first query to rows strictly older than the cursor."""
    if not cursor:
        return query
    created_at, row_id = decode_cursor(cursor)
    return query.filter(
        or_(
            model.created_at < created_at,
            and_(model.created_at == created_at, model.id < row_id),
        )
    )


@dataclass
class Page:
    """One page of results plus the cursor for the next one."""
    items: List[Any] = field(default_factory=list)
    cursor: Optional[str] = None

    @property
    def is_done(self) -> bool:
        return self.cursor is None


def paginate(query, model, cursor: Optional[str], num_items: Optional[int]) -> Page:
    """
    Fetch one newest-first page.

    One extra row is read to decide whether another page exists, so the
    cursor is only returned when there is more to read.
    """
    limit = clamp_limit(num_items)
    rows = newest_first(after_cursor(query, model, cursor), model).limit(limit + 1).all()
    has_more = len(rows) > limit
    rows = rows[:limit]
    next_cursor = encode_cursor(rows[-1].created_at, rows[-1].id) if has_more and rows else None
    return Page(items=rows, cursor=next_cursor)
