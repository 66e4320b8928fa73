from sqlalchemy import func
from sqlmodel import select

MAX_LIMIT = 100


def paginate(
    *,
    session,
    query,
    page: int = 1,
    limit: int = 10,
):
    """Run ``query`` for one page; the count is taken over the unpaged query."""
    page = max(page, 1)
    if limit < 1:
        limit = 10
    limit = min(limit, MAX_LIMIT)

    total = session.exec(
        select(func.count()).select_from(query.subquery())
    ).one()

    results = session.exec(
        query.offset((page - 1) * limit).limit(limit)
    ).all()

    return {
        "total_items": total,
        "total_pages": (total + limit - 1) // limit,
        "current_page": page,
        "limit": limit,
        "has_next": page * limit < total,
        "results": results,
    }
