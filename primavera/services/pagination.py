# primavera/services/pagination.py

from typing import List, Optional, Tuple

from sqlalchemy import and_, or_
from sqlmodel import Session

from primavera.errors import ValidationError

MAX_PAGE_SIZE = 100


def paginate(session: Session, statement, model, cursor: Optional[int], limit: int) -> Tuple[List, Optional[int]]:
    """
    Newest-first cursor pagination over a model with `id` and `created_at`.

    The cursor is the id of the first row of the page. We fetch one row more
    than asked for; if it exists, its id becomes the next cursor.
    """
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

    if cursor is not None:
        anchor = session.get(model, cursor)
        if anchor is None:
            raise ValidationError(f"Invalid cursor: {cursor}")
        statement = statement.where(
            or_(
                model.created_at < anchor.created_at,
                and_(model.created_at == anchor.created_at, model.id <= anchor.id),
            )
        )

    statement = statement.order_by(model.created_at.desc(), model.id.desc()).limit(limit + 1)
    rows = list(session.exec(statement).all())

    next_cursor = None
    if len(rows) > limit:
        next_cursor = rows.pop().id
    return rows, next_cursor
