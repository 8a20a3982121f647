import math


def page_window(page, limit, default_limit: int, max_limit: int):
    """Normalizes page/limit query values; returns (page, limit, offset)."""
    try:
        page = max(1, int(page or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(limit) if limit else default_limit
    except (TypeError, ValueError):
        limit = default_limit
    limit = min(max(1, limit), max_limit)
    return page, limit, (page - 1) * limit


def format_pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
        "has_next": page * limit < total,
        "has_prev": page > 1,
    }
