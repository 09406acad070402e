import math

from flask import request


def page_args(default_limit: int = 20):
    """?page=&limit= from the query string, falling back to sane defaults."""
    page = request.args.get("page", type=int) or 1
    limit = request.args.get("limit", type=int) or default_limit
    return max(page, 1), max(limit, 1)


def pagination_meta(page: int, limit: int, total: int) -> dict:
    return {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit) if limit else 0}
