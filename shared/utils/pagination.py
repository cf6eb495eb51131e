"""Page arithmetic shared by every list endpoint."""
import math
from typing import Optional, Tuple

from sqlalchemy.orm import Query

from config import get_settings


def resolve_page(page: Optional[int], limit: Optional[int]) -> Tuple[int, int]:
    """Clamp a requested page/limit to ``page >= 1`` and ``1 <= limit <= max_page_size``."""
    settings = get_settings()
    page = page if page and page > 0 else 1
    if not limit or limit < 1:
        limit = settings.default_page_size
    return page, min(limit, settings.max_page_size)


def total_pages(total_count: int, limit: int) -> int:
    """An empty listing still reports one page."""
    return max(1, math.ceil(total_count / limit))


def paginate(query: Query, page: Optional[int], limit: Optional[int]) -> Tuple[list, dict]:
    """
    Run ``query`` for one page.

    Returns:
        (rows, meta) where meta carries total_count, total_pages and current_page
    """
    page, limit = resolve_page(page, limit)
    total_count = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, {
        "total_count": total_count,
        "total_pages": total_pages(total_count, limit),
        "current_page": page,
    }
