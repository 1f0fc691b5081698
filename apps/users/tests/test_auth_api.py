"""API tests for authentication and profile endpoints."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.domain.exceptions import UserNotFound
from apps.users.models import User
from apps.users.services import get_user_by_email


class AuthAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="guest@example.com",
            password="StrongPass123",
            full_name="Guest User",
            phone="+84 901 234 567",
        )

    def test_token_obtain_with_email(self) -> None:
        response = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "guest@example.com", "password": "StrongPass123"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data)
        self.assertIn("refresh", response.data)

    def test_token_rejects_wrong_password(self) -> None:
        response = self.client.post(
            reverse("auth:token_obtain_pair"),
            {"email": "guest@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_profile(self) -> None:
        self.client.force_authenticate(self.user)
        response = self.client.get(reverse("user-me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["full_name"], "Guest User")
        self.assertEqual(response.data["role"], User.RoleChoices.USER)
        self.assertFalse(response.data["is_hotel_admin"])

    def test_user_list_requires_admin(self) -> None:
        self.client.force_authenticate(self.user)
        response = self.client.get(reverse("user-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_phone_is_normalized(self) -> None:
        self.assertEqual(self.user.phone, "+84901234567")


class UserLookupTests(APITestCase):
    def test_get_user_by_email_is_case_insensitive(self) -> None:
        user = User.objects.create_user(email="Admin@Hotel.com", password="x", role=User.RoleChoices.ADMIN)
        self.assertEqual(get_user_by_email("admin@hotel.com"), user)
        self.assertTrue(user.is_hotel_admin())

    def test_get_user_by_email_missing(self) -> None:
        with self.assertRaises(UserNotFound):
            get_user_by_email("nobody@hotel.com")
