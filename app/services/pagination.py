"""
Pagination and sort planning for the todo list endpoint.

Turns raw query values into a sort plan (field → 1 | -1, in the order the
fields were supplied) and a page window (skip/limit).
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from app.constants import DEFAULT_SORT, SORT_DIRECTIONS, SORTABLE_FIELDS
from app.exceptions import ValidationError


@dataclass(frozen=True)
class PageWindow:
    per_page: int
    page: int

    @property
    def skip(self) -> int:
        return self.per_page * (self.page - 1)

    @property
    def limit(self) -> int:
        return self.per_page


def parse_direction(field: str, raw: str) -> int:
    direction = SORT_DIRECTIONS.get(str(raw).strip().lower())
    if direction is None:
        allowed = ", ".join(SORT_DIRECTIONS)
        raise ValidationError(
            f"Invalid sort value '{raw}' for '{field}'. Allowed values: {allowed}."
        )
    return direction


def build_sort_plan(
    query_items: Iterable[tuple[str, str]] | Mapping[str, str],
    sortable_fields: Iterable[str] = SORTABLE_FIELDS,
) -> dict[str, int]:
    """
    Build the ordered sort plan from query parameters.

    Only ``sortable_fields`` are considered; other parameters are ignored.
    Falls back to ascending ``created_at`` when no directive is supplied.
    """
    if isinstance(query_items, Mapping):
        query_items = query_items.items()
    sortable = set(sortable_fields)

    plan: dict[str, int] = {}
    for field, raw in query_items:
        if field in sortable:
            plan[field] = parse_direction(field, raw)

    return plan or dict(DEFAULT_SORT)


def _positive_int(name: str, raw) -> int:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError(f"'{name}' is required.")
    if isinstance(raw, bool):
        raise ValidationError(f"'{name}' must be a positive integer.")
    try:
        value = int(str(raw).strip())
    except ValueError as e:
        raise ValidationError(f"'{name}' must be a positive integer.") from e
    if value < 1:
        raise ValidationError(f"'{name}' must be a positive integer.")
    return value


def plan_page(per_page, page) -> PageWindow:
    """Validate ``perPage`` and ``page`` and return the window."""
    return PageWindow(
        per_page=_positive_int("perPage", per_page),
        page=_positive_int("page", page),
    )


def summarize_page(window: PageWindow, total_count: int) -> tuple[int, bool]:
    """Return ``(page_count, is_last_page)`` for a window over ``total_count`` items."""
    page_count = math.ceil(total_count / window.per_page)
    is_last_page = total_count == 0 or window.page == page_count
    return page_count, is_last_page
