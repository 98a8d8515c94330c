from typing import Optional

from fastapi import Query

from ..config import settings
from ..errors import ValidationError
from ..models import CATEGORIES, PRIORITIES, STATUSES

# SQLite binds 64-bit integers; far-out pages would overflow the OFFSET
MAX_PAGE = 10**9


def _choice(name: str, value: Optional[str], allowed: tuple) -> Optional[str]:
    # empty string and "all" mean "no filter", as the list page sends them
    if value is None or value == "" or value == "all":
        return None
    if value in allowed:
        return value
    raise ValidationError(f"{name} must be one of: {', '.join(allowed)}")


def parse_status(status: Optional[str] = Query(None)) -> Optional[str]:
    return _choice("status", status, STATUSES)


def parse_priority(priority: Optional[str] = Query(None)) -> Optional[str]:
    return _choice("priority", priority, PRIORITIES)


def parse_category(category: Optional[str] = Query(None)) -> Optional[str]:
    return _choice("category", category, CATEGORIES)


def parse_page(page: Optional[str] = Query(None)) -> int:
    if page is None or page == "":
        return 1
    try:
        value = int(page)
    except (TypeError, ValueError) as err:
        raise ValidationError("page must be a positive integer") from err
    if value < 1:
        raise ValidationError("page must be a positive integer")
    if value > MAX_PAGE:
        raise ValidationError("page is out of range")
    return value


def parse_limit(limit: Optional[str] = Query(None)) -> int:
    if limit is None or limit == "":
        return settings.DEFAULT_PAGE_SIZE
    try:
        value = int(limit)
    except (TypeError, ValueError) as err:
        raise ValidationError("limit must be a positive integer") from err
    if value < 1:
        raise ValidationError("limit must be a positive integer")
    return min(value, settings.MAX_PAGE_SIZE)
