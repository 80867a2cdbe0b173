"""Pagination window coercion and page/count execution."""

import math
from typing import Any, List, NamedTuple

from sqlalchemy.orm import Query

DEFAULT_SKIP = 0
DEFAULT_TAKE = 10
# Largest value the store accepts for LIMIT/OFFSET (signed 64-bit).
MAX_WINDOW = 2**63 - 1


class Window(NamedTuple):
    skip: int
    take: int


class PageSlice(NamedTuple):
    """One page of rows plus the count of all rows matching the same filter."""
    items: List[Any]
    total: int


def _to_number(value: Any, default: int) -> "int | float":
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return number


def _round_half_up(number: "int | float") -> int:
    if isinstance(number, int):
        return number
    return int(math.floor(number + 0.5))


def _clamp(value: int, low: int) -> int:
    return min(MAX_WINDOW, max(low, value))


def coerce_window(skip: Any, take: Any) -> Window:
    """
    Coerce raw skip/take values into a valid window.

    Fractional values round to the nearest integer; take is at least 1 and
    skip at least 0, and neither exceeds MAX_WINDOW. Unparseable values fall
    back to the defaults. Never raises.
    """
    skip_value = _clamp(_round_half_up(_to_number(skip, DEFAULT_SKIP)), 0)
    take_value = _clamp(_round_half_up(_to_number(take, DEFAULT_TAKE)), 1)
    return Window(skip=skip_value, take=take_value)


def page_to_window(page: Any, size: Any, default_size: int = DEFAULT_TAKE) -> Window:
    """
    Translate a 1-based page number and page size into skip/take.

    Page and size are coerced first (both at least 1), then
    skip = (page - 1) * size, capped at MAX_WINDOW.
    """
    page_value = _clamp(_round_half_up(_to_number(page, 1)), 1)
    size_value = _clamp(_round_half_up(_to_number(size, default_size)), 1)
    return Window(skip=_clamp((page_value - 1) * size_value, 0), take=size_value)


def fetch_page(page_query: Query, count_query: Query, window: Window) -> PageSlice:
    """
    Run the bounded page query and the unbounded count query.

    Both queries must carry the same joins and predicate; the builder
    guarantees that. They run back to back in the caller's session.
    """
    items = page_query.offset(window.skip).limit(window.take).all()
    total = count_query.count()
    return PageSlice(items=items, total=total)
