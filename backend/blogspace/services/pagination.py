"""
Offset pagination helpers shared by the blog and user listings.

Query parameters arrive as raw strings and are clamped, never rejected:
page >= 1 and 1 <= limit <= MAX_LIMIT; anything unparsable falls back
to the default.
"""

import math
from typing import Optional, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _parse_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        # Accept "2.0"-style input the way parseInt would
        try:
            return int(float(value))
        except (ValueError, OverflowError):
            return default


def normalize_pagination(
    page: Optional[str],
    limit: Optional[str],
    default_limit: int = DEFAULT_LIMIT,
) -> Tuple[int, int]:
    """
    >>> normalize_pagination("0", "500")
    (1, 100)
    >>> normalize_pagination("abc", None)
    (1, 10)
    """
    page_num = max(DEFAULT_PAGE, _parse_int(page, DEFAULT_PAGE))
    limit_num = min(MAX_LIMIT, max(1, _parse_int(limit, default_limit)))
    return page_num, limit_num


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
