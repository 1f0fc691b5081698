"""Permission classes for the hotel API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_hotel_admin(user) -> bool:  # type: ignore
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_hotel_admin") and user.is_hotel_admin()


class IsHotelAdmin(permissions.BasePermission):
    """
    Only hotel administrators.

    An administrator is a user with role='ADMIN' or any Django
    staff/superuser account.
    """

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_hotel_admin(request.user)


class IsBookingOwnerOrAdmin(permissions.BasePermission):
    """
    Object-level permission: the guest who made the booking or an
    administrator.
    """

    def has_object_permission(self, request, view, obj) -> bool:  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if is_hotel_admin(user):
            return True
        return getattr(obj, "user_id", None) == user.id
