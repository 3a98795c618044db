"""Pagination helpers shared by list endpoints"""

import math

MAX_PAGE_SIZE = 100


def clamp_page(page: int, limit: int) -> tuple[int, int]:
    """Coerce page/limit into the accepted range"""
    page = max(1, int(page or 1))
    limit = min(MAX_PAGE_SIZE, max(1, int(limit or 1)))
    return page, limit


def build_meta(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
