"""Fixtures shared by the booking tests."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from unittest import mock
from zoneinfo import ZoneInfo

from django.conf import settings

from apps.rooms.models import Room
from apps.users.models import User

HOTEL_TZ = ZoneInfo(settings.TIME_ZONE)


def local_dt(year, month, day, hour=0, minute=0, second=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=HOTEL_TZ)


@contextmanager
def frozen_now(moment: datetime):
    """Pin django.utils.timezone.now (and so localdate) to ``moment``."""
    with mock.patch("django.utils.timezone.now", return_value=moment):
        yield moment


def make_user(email="guest@example.com", role=User.RoleChoices.USER, **extra) -> User:
    extra.setdefault("full_name", "Nguyen Van A")
    extra.setdefault("phone", "+84901234567")
    return User.objects.create_user(email=email, password="GuestPass123", role=role, **extra)


def make_admin(email="admin@example.com") -> User:
    return make_user(email=email, role=User.RoleChoices.ADMIN, full_name="Front Desk", phone="")


def make_room(number="101", price="1000000", max_occupancy=2, **extra) -> Room:
    extra.setdefault("name", f"Room {number}")
    return Room.objects.create(
        room_number=number,
        price_per_night=Decimal(price),
        max_occupancy=max_occupancy,
        **extra,
    )


def guest(full_name="Nguyen Van A", national_id="079123456789", **extra) -> dict:
    data = {
        "full_name": full_name,
        "phone": "+84901234567",
        "email": "guest@example.com",
        "national_id": national_id,
        "nationality": "VN",
        "address": "1 Le Loi, District 1",
    }
    data.update(extra)
    return data


def stay(check_in: date, check_out: date) -> dict:
    return {"check_in_date": check_in, "check_out_date": check_out}
