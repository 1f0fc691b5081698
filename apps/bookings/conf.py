"""Hotel booking settings with defaults.

Values come from the ``HOTEL_BOOKING`` dict in Django settings; anything
missing there falls back to ``DEFAULTS``. Attribute access is resolved on
every read so ``override_settings`` works in tests.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings  # type: ignore

DEFAULTS: dict[str, Any] = {
    "TAX_RATE": Decimal("0.10"),
    "SERVICE_CHARGE_RATE": Decimal("0.05"),
    "DEPOSIT_RATE": Decimal("0.30"),
    "CANCELLATION_FEE_RATE": Decimal("0.20"),
    "FREE_CANCELLATION_HOURS": 24,
    "MIN_NIGHTS": 1,
    "MAX_NIGHTS": 30,
    "MAX_ADVANCE_BOOKING_DAYS": 365,
    "DEFAULT_EARLY_CHECK_IN_FEE": Decimal("100000"),
    "DEFAULT_LATE_CHECK_OUT_FEE": Decimal("100000"),
    "CURRENCY": "VND",
    "HOTEL_NAME": "Hotel",
    "REMINDER_LEAD_DAYS": 1,
    "GROUP_MIN_ROOMS": 2,
    "GROUP_MAX_ROOMS": 10,
}

DECIMAL_KEYS = {
    "TAX_RATE",
    "SERVICE_CHARGE_RATE",
    "DEPOSIT_RATE",
    "CANCELLATION_FEE_RATE",
    "DEFAULT_EARLY_CHECK_IN_FEE",
    "DEFAULT_LATE_CHECK_OUT_FEE",
}


class BookingSettings:
    def __getattr__(self, name: str) -> Any:
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid hotel booking setting: {name}")
        configured = getattr(settings, "HOTEL_BOOKING", {}) or {}
        value = configured.get(name, DEFAULTS[name])
        if name in DECIMAL_KEYS:
            return Decimal(str(value))
        return value


booking_settings = BookingSettings()
