"""Identity lookups used by the booking engine."""

from __future__ import annotations

from apps.bookings.domain.exceptions import UserNotFound

from .models import CustomUser


def get_user_by_email(email: str) -> CustomUser:
    try:
        return CustomUser.objects.get(email__iexact=(email or "").strip())
    except CustomUser.DoesNotExist as exc:
        raise UserNotFound(f"User with email {email} not found", field="email") from exc


def get_user(user_id: int) -> CustomUser:
    try:
        return CustomUser.objects.get(pk=user_id)
    except CustomUser.DoesNotExist as exc:
        raise UserNotFound(f"User {user_id} not found", field="user_id") from exc
