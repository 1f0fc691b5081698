"""API views for analytics.

Read-only reports over the booking set for hotel administrators:
headline statistics, revenue, occupancy and the daily and monthly
operations reports. The figures come from ``apps.bookings.reports``.
"""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework.permissions import IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.bookings import reports
from apps.bookings.serializers import (
    BookingListSerializer,
    DateRangeQuerySerializer,
    DayQuerySerializer,
    MonthQuerySerializer,
)
from apps.users.api.permissions import IsHotelAdmin


def _query(serializer_class, request) -> dict:
    serializer = serializer_class(data=request.query_params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


class AdminReportView(APIView):
    permission_classes = [IsAuthenticated, IsHotelAdmin]


class StatisticsView(AdminReportView):
    """Counts per status, revenue split, averages and cancellation rate."""

    def get(self, request, format=None):  # type: ignore
        return Response(reports.booking_statistics(timezone.localdate()))


class RevenueByRangeView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        data = _query(DateRangeQuerySerializer, request)
        return Response(reports.revenue_by_range(data["start_date"], data["end_date"]))


class TotalRevenueView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        return Response({"total_revenue": reports.total_revenue()})


class OccupancyView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        data = _query(DateRangeQuerySerializer, request)
        return Response({
            "start_date": data["start_date"],
            "end_date": data["end_date"],
            "occupancy_rate": reports.occupancy_rate(data["start_date"], data["end_date"]),
        })


class BookingsBySourceView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        return Response(reports.bookings_by_source())


class DailyReportView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        data = _query(DayQuerySerializer, request)
        report = reports.daily_operations_report(data.get("date") or timezone.localdate())
        context = {"request": request}
        report["check_ins"] = BookingListSerializer(report["check_ins"], many=True, context=context).data
        report["check_outs"] = BookingListSerializer(report["check_outs"], many=True, context=context).data
        return Response(report)


class MonthlyReportView(AdminReportView):
    def get(self, request, format=None):  # type: ignore
        data = _query(MonthQuerySerializer, request)
        return Response(reports.monthly_report(data["year"], data["month"]))
