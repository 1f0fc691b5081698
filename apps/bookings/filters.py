"""FilterSet definitions for booking search and listing."""

from __future__ import annotations

import django_filters  # type: ignore
from django.db.models import Q  # type: ignore

from .domain.statuses import BookingSource, BookingStatus, PaymentStatus
from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    """
    Multi-criteria booking filter.

    Every criterion is ANDed; a criterion left out of the query string
    does not narrow the result.
    """

    keyword = django_filters.CharFilter(method="filter_keyword")
    national_id = django_filters.CharFilter(method="filter_national_id")

    user = django_filters.NumberFilter(field_name="user_id", lookup_expr="exact")
    room = django_filters.NumberFilter(field_name="room_id", lookup_expr="exact")
    room_number = django_filters.CharFilter(field_name="room_number", lookup_expr="iexact")
    booking_number = django_filters.CharFilter(field_name="booking_number", lookup_expr="iexact")
    status = django_filters.MultipleChoiceFilter(choices=BookingStatus.choices)
    payment_status = django_filters.MultipleChoiceFilter(choices=PaymentStatus.choices)
    booking_source = django_filters.ChoiceFilter(choices=BookingSource.choices)

    check_in_from = django_filters.DateFilter(field_name="check_in_date", lookup_expr="gte")
    check_in_to = django_filters.DateFilter(field_name="check_in_date", lookup_expr="lte")
    check_out_from = django_filters.DateFilter(field_name="check_out_date", lookup_expr="gte")
    check_out_to = django_filters.DateFilter(field_name="check_out_date", lookup_expr="lte")
    created_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    created_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    min_amount = django_filters.NumberFilter(field_name="total_amount", lookup_expr="gte")
    max_amount = django_filters.NumberFilter(field_name="total_amount", lookup_expr="lte")

    class Meta:
        model = Booking
        fields = [
            "is_group_booking",
            "group_booking_id",
            "deposit_paid",
            "is_early_check_in",
            "is_late_check_out",
        ]

    def filter_keyword(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(booking_number__icontains=value)
            | Q(user_full_name__icontains=value)
            | Q(user_email__icontains=value)
            | Q(user_phone__icontains=value)
            | Q(guests__full_name__icontains=value)
            | Q(guests__email__icontains=value)
            | Q(guests__phone__icontains=value)
        ).distinct()

    def filter_national_id(self, queryset, name, value):  # type: ignore
        value = (value or "").strip()
        if not value:
            return queryset
        # Primary or any additional guest
        return queryset.filter(guests__national_id=value).distinct()
