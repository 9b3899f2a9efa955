from __future__ import annotations

from .config import MAX_PAGE_LIMIT
from .errors import ValidationError


def _to_int(value: str | int, field: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if number < 0:
        raise ValidationError(f"{field} must not be negative")
    return number


def skip_take(limit: str | int | None, page: str | int | None = None, max_limit: int = MAX_PAGE_LIMIT) -> tuple[int, int]:
    """
    Convert `limit`/`page` query parameters into `(skip, take)`.

    - `limit` is required, `page` defaults to "0"
    - `take` is capped at `max_limit`
    - `skip = page * take`
    """
    if limit is None or limit == "":
        raise ValidationError("limit is required")
    if page is None or page == "":
        page = "0"

    take = min(_to_int(limit, "limit"), max_limit)
    skip = _to_int(page, "page") * take
    return skip, take
