"""Booking search and listing queries.

``search_bookings`` is the transport-independent search: criteria go
through ``BookingFilterSet``, the sort field is checked against a
whitelist and the result comes back as a ``BookingPage``. The other
functions are the fixed listings used by guests and the front desk.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, List, Mapping

from django.core.paginator import EmptyPage, Paginator  # type: ignore
from django.db.models import QuerySet  # type: ignore

from .domain.exceptions import BookingValidationError
from .domain.statuses import BookingStatus
from .filters import BookingFilterSet
from .models import Booking

SORTABLE_FIELDS = (
    "created_at",
    "updated_at",
    "check_in_date",
    "check_out_date",
    "total_amount",
    "booking_number",
    "status",
    "payment_status",
    "room_number",
    "user_full_name",
)
DEFAULT_SORT = "-created_at"
MAX_PAGE_SIZE = 100
MULTI_VALUE_CRITERIA = ("status", "payment_status")

HISTORY_STATUSES = (
    BookingStatus.CHECKED_OUT,
    BookingStatus.COMPLETED,
    BookingStatus.CANCELLED,
    BookingStatus.NO_SHOW,
)
UPCOMING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


@dataclass
class BookingPage:
    items: List[Booking] = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0


def base_queryset() -> QuerySet:
    return Booking.objects.select_related("room", "user").prefetch_related("guests")


def order_clause(sort: str | None) -> List[str]:
    """Validated ORDER BY for ``sort`` (``field`` or ``-field``), newest first by default."""
    sort = (sort or DEFAULT_SORT).strip()
    name = sort.lstrip("-")
    if name not in SORTABLE_FIELDS:
        raise BookingValidationError(
            f"Cannot sort by {name}; choose one of {', '.join(SORTABLE_FIELDS)}",
            field="sort",
        )
    # id breaks ties so pages are stable
    tiebreak = "-id" if sort.startswith("-") else "id"
    return [sort, tiebreak]


def _criteria_data(criteria: Mapping[str, Any] | None) -> Mapping[str, Any]:
    """Wrap single values of the multi-value criteria (``status="PENDING"``) in a list"""
    if not criteria or hasattr(criteria, "getlist"):
        return criteria or {}
    data = dict(criteria)
    for key in MULTI_VALUE_CRITERIA:
        if isinstance(data.get(key), str):
            data[key] = [data[key]]
    return data


def filter_bookings(criteria: Mapping[str, Any] | None, queryset: QuerySet | None = None) -> QuerySet:
    filterset = BookingFilterSet(data=_criteria_data(criteria), queryset=base_queryset() if queryset is None else queryset)
    if not filterset.is_valid():
        field_name, messages = next(iter(filterset.errors.items()))
        raise BookingValidationError(
            f"Invalid search criteria: {field_name}: {' '.join(messages)}",
            field=field_name,
            details={"errors": {key: [str(m) for m in value] for key, value in filterset.errors.items()}},
        )
    return filterset.qs


def search_bookings(
    criteria: Mapping[str, Any] | None = None,
    page: int = 1,
    page_size: int = 10,
    sort: str | None = DEFAULT_SORT,
) -> BookingPage:
    """
    Filter, sort and paginate bookings.

    A page past the end is returned empty rather than raising.
    """
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise BookingValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}", field="page_size")
    if page < 1:
        raise BookingValidationError("Page must be 1 or greater", field="page")

    queryset = filter_bookings(criteria).order_by(*order_clause(sort))
    paginator = Paginator(queryset, page_size)
    try:
        items = list(paginator.page(page).object_list)
    except EmptyPage:
        items = []
    return BookingPage(items=items, page=page, page_size=page_size, total=paginator.count)


def upcoming_for_user(user, today: date) -> QuerySet:
    return base_queryset().filter(
        user=user,
        check_in_date__gte=today,
        status__in=UPCOMING_STATUSES,
    ).order_by("check_in_date", "id")


def history_for_user(user) -> QuerySet:
    return base_queryset().filter(user=user, status__in=HISTORY_STATUSES).order_by("-check_out_date", "-id")


def check_ins_on(day: date) -> QuerySet:
    """Arrivals expected on ``day``: pending or confirmed stays starting that day."""
    return base_queryset().filter(
        check_in_date=day,
        status__in=UPCOMING_STATUSES,
    ).order_by("room_number")


def check_outs_on(day: date) -> QuerySet:
    """Departures expected on ``day``: guests in house whose stay ends that day."""
    return base_queryset().filter(
        check_out_date=day,
        status=BookingStatus.CHECKED_IN,
    ).order_by("room_number")


def needing_cleaning() -> QuerySet:
    return base_queryset().filter(
        status=BookingStatus.CHECKED_OUT,
        room_cleaned_after_checkout=False,
    ).order_by("actual_check_out_time")
