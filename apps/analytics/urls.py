"""URL routing for analytics endpoints."""

from django.urls import path  # type: ignore

from .views import (
    BookingsBySourceView,
    DailyReportView,
    MonthlyReportView,
    OccupancyView,
    RevenueByRangeView,
    StatisticsView,
    TotalRevenueView,
)


urlpatterns = [
    # Do not prefix with 'analytics/' here; the namespace is defined in config.urls
    path('statistics/', StatisticsView.as_view(), name='analytics-statistics'),
    path('revenue/', RevenueByRangeView.as_view(), name='analytics-revenue'),
    path('revenue/total/', TotalRevenueView.as_view(), name='analytics-revenue-total'),
    path('occupancy/', OccupancyView.as_view(), name='analytics-occupancy'),
    path('by-source/', BookingsBySourceView.as_view(), name='analytics-by-source'),
    path('reports/daily/', DailyReportView.as_view(), name='analytics-daily-report'),
    path('reports/monthly/', MonthlyReportView.as_view(), name='analytics-monthly-report'),
]
