"""Serializers for the account profile endpoints."""

from __future__ import annotations

from django.contrib.auth import get_user_model  # type: ignore
from rest_framework import serializers  # type: ignore

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """Profile of a guest or staff member; only name and phone are editable."""

    is_hotel_admin = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "full_name",
            "phone",
            "role",
            "is_hotel_admin",
            "created_at",
        ]
        read_only_fields = ["id", "email", "role", "created_at"]

    def get_is_hotel_admin(self, obj) -> bool:
        return obj.is_hotel_admin()

