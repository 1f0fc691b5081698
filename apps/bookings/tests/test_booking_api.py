"""Integration tests for booking API endpoints."""

from __future__ import annotations

from unittest import mock

from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, ServiceCharge
from apps.bookings.tests.helpers import guest, local_dt, make_admin, make_room, make_user


class BookingAPITests(APITestCase):
    """Covers creation, conflicts, visibility and the front-desk flow."""

    def setUp(self) -> None:
        self.clock = mock.patch("django.utils.timezone.now", return_value=local_dt(2025, 6, 1, 10, 0)).start()
        self.addCleanup(mock.patch.stopall)

        self.guest = make_user()
        self.other = make_user("other@example.com", full_name="Le Van C", phone="+84907654321")
        self.admin = make_admin()
        self.room = make_room("101", price="1000000")
        self.client.force_authenticate(self.guest)
        self.list_url = reverse("booking-list")

    def _payload(self, check_in: str = "2025-06-10", check_out: str = "2025-06-13", **extra) -> dict:
        payload = {
            "room_id": self.room.pk,
            "check_in_date": check_in,
            "check_out_date": check_out,
            "number_of_guests": 2,
            "primary_guest": guest(),
        }
        payload.update(extra)
        return payload

    def _create(self, **kwargs) -> dict:
        response = self.client.post(self.list_url, self._payload(**kwargs), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        return response.data

    def _as_admin(self) -> None:
        self.client.force_authenticate(self.admin)

    def _action(self, name: str, pk: int, data: dict | None = None):
        return self.client.post(reverse(f"booking-{name}", args=[pk]), data or {}, format="json")

    # --- create ---------------------------------------------------------------
    def test_guest_can_create_booking(self) -> None:
        data = self._create()

        self.assertEqual(data["booking_number"], "BK202506010001")
        self.assertEqual(data["status"], Booking.Status.PENDING)
        self.assertEqual(data["total_amount"], "3450000.00")
        self.assertEqual(data["deposit_amount"], "1035000.00")
        self.assertEqual(data["primary_guest"]["full_name"], "Nguyen Van A")
        self.assertEqual(data["user_email"], "guest@example.com")
        self.assertNotIn("admin_notes", data)

    def test_overlapping_booking_returns_conflict(self) -> None:
        self._create()
        response = self.client.post(
            self.list_url, self._payload("2025-06-12", "2025-06-14"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "room_unavailable")
        self.assertEqual(response.data["field"], "check_in_date")
        self.assertEqual(response.data["details"]["conflicting_dates"], ["2025-06-12"])
        self.assertIn("detail", response.data)

    def test_back_to_back_bookings_are_allowed(self) -> None:
        self._create()
        data = self._create(check_in="2025-06-13", check_out="2025-06-15")
        self.assertEqual(data["booking_number"], "BK202506010002")

    def test_invalid_dates_are_rejected(self) -> None:
        response = self.client.post(
            self.list_url, self._payload("2025-06-13", "2025-06-10"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_booking")
        self.assertEqual(response.data["field"], "check_out_date")

    def test_primary_guest_is_required(self) -> None:
        payload = self._payload()
        del payload["primary_guest"]
        response = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("primary_guest", response.data)

    def test_unknown_room_returns_not_found(self) -> None:
        response = self.client.post(self.list_url, self._payload(room_id=9999), format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "room_not_found")

    def test_guest_cannot_book_for_someone_else(self) -> None:
        data = self._create(user_email="other@example.com")
        self.assertEqual(data["user_email"], "guest@example.com")

    def test_admin_can_book_on_behalf_of_guest(self) -> None:
        self._as_admin()
        data = self._create(user_email="other@example.com")
        self.assertEqual(data["user_email"], "other@example.com")
        self.assertEqual(data["booking_source"], "PHONE")

        data = self._create(
            check_in="2025-06-20", check_out="2025-06-21", user_email="other@example.com", booking_source="WALK_IN",
        )
        self.assertEqual(data["booking_source"], "WALK_IN")

    def test_own_booking_defaults_to_website(self) -> None:
        self.assertEqual(self._create()["booking_source"], "WEBSITE")

    def test_group_booking(self) -> None:
        second = make_room("102", price="800000")
        response = self.client.post(
            reverse("booking-group"),
            {
                "room_ids": [self.room.pk, second.pk],
                "check_in_date": "2025-06-10",
                "check_out_date": "2025-06-12",
                "room_bookings": [
                    {"number_of_guests": 2, "primary_guest": guest()},
                    {"number_of_guests": 1, "primary_guest": guest("Tran Thi B", "079000000001")},
                ],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data["group_booking_id"].startswith("GRP"))
        self.assertEqual(len(response.data["bookings"]), 2)

    # --- visibility -----------------------------------------------------------
    def test_guest_sees_only_own_bookings(self) -> None:
        own = self._create()
        self.client.force_authenticate(self.other)
        self._create(check_in="2025-06-20", check_out="2025-06-21")

        self.client.force_authenticate(self.guest)
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["id"], own["id"])

        self._as_admin()
        response = self.client.get(self.list_url)
        self.assertEqual(response.data["count"], 2)

    def test_other_guest_gets_not_found(self) -> None:
        booking = self._create()
        self.client.force_authenticate(self.other)
        response = self.client.get(reverse("booking-detail", args=[booking["id"]]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self._action("cancel", booking["id"])
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_lookup_by_number(self) -> None:
        booking = self._create()
        response = self.client.get(reverse("booking-by-number", kwargs={"booking_number": booking["booking_number"]}))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["id"], booking["id"])

        response = self.client.get(reverse("booking-by-number", kwargs={"booking_number": "BK209901010001"}))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "booking_not_found")

    def test_admin_filters_by_status(self) -> None:
        first = self._create()
        self._create(check_in="2025-06-20", check_out="2025-06-21")
        self._action("cancel", first["id"])

        self._as_admin()
        response = self.client.get(self.list_url, {"status": "CANCELLED"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [first["id"]])

    def test_my_upcoming_and_history(self) -> None:
        first = self._create()
        second = self._create(check_in="2025-06-20", check_out="2025-06-21")
        self._action("cancel", first["id"])

        upcoming = self.client.get(reverse("booking-my-upcoming"))
        history = self.client.get(reverse("booking-my-history"))
        self.assertEqual([row["id"] for row in upcoming.data], [second["id"]])
        self.assertEqual([row["id"] for row in history.data], [first["id"]])

    # --- guest actions --------------------------------------------------------
    def test_guest_cancels_own_booking(self) -> None:
        booking = self._create()
        response = self._action("cancel", booking["id"], {"reason": "Plans changed"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Booking.Status.CANCELLED)
        self.assertEqual(response.data["cancellation_fee"], "0.00")
        self.assertEqual(response.data["cancellation_reason"], "Plans changed")

        response = self._action("cancel", booking["id"])
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "invalid_status_transition")

    def test_second_payment_is_a_conflict(self) -> None:
        booking = self._create()
        response = self._action("payment", booking["id"], {"payment_method": "BANK_TRANSFER"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["payment_status"], Booking.PaymentStatus.PAID)

        response = self._action("payment", booking["id"], {"payment_method": "CASH"})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "already_paid")

    def test_guest_can_change_dates(self) -> None:
        booking = self._create()
        response = self.client.patch(
            reverse("booking-detail", args=[booking["id"]]),
            {"check_out_date": "2025-06-14"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["number_of_nights"], 4)
        self.assertEqual(response.data["total_amount"], "4600000.00")

    # --- front desk -----------------------------------------------------------
    def test_front_desk_actions_require_admin(self) -> None:
        booking = self._create()
        for name in ("confirm", "check-in", "check-out", "discount", "mark-cleaned"):
            response = self._action(name, booking["id"])
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, name)
        response = self.client.get(reverse("booking-needs-cleaning"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_check_in_verifies_national_id(self) -> None:
        booking = self._create()
        self._as_admin()
        self._action("confirm", booking["id"])
        self.clock.return_value = local_dt(2025, 6, 10, 14, 0)

        response = self._action("check-in", booking["id"], {"guest_verification": {"national_id": "000000000000"}})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "guest_verification_failed")

        response = self._action(
            "check-in",
            booking["id"],
            {"guest_verification": {"national_id": "079123456789"}, "deposit_payment_method": "CASH"},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], Booking.Status.CHECKED_IN)
        self.assertTrue(response.data["deposit_paid"])

    def test_service_charges_are_added_and_voided(self) -> None:
        booking = self._create()
        self._as_admin()
        self._action("confirm", booking["id"])
        self.clock.return_value = local_dt(2025, 6, 10, 14, 0)
        self._action("check-in", booking["id"])

        url = reverse("booking-service-charges", args=[booking["id"]])
        response = self.client.post(
            url,
            {"service_type": "LAUNDRY", "description": "Shirts", "unit_amount": "40000", "quantity": 3},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["additional_charges_total"], "120000.00")
        self.assertEqual(response.data["total_amount"], "3570000.00")

        charge = ServiceCharge.objects.get(booking_id=booking["id"])
        response = self.client.delete(
            reverse("booking-remove-service-charge", kwargs={"pk": booking["id"], "charge_id": str(charge.pk)})
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total_amount"], "3450000.00")

        listing = self.client.get(url)
        self.assertEqual(len(listing.data), 1)
        self.assertIsNotNone(listing.data[0]["voided_at"])

    def test_admin_notes_hidden_from_guest(self) -> None:
        booking = self._create()
        self._as_admin()
        response = self._action("notes", booking["id"], {"notes": "Prefers high floor"})
        self.assertIn("Prefers high floor", response.data["admin_notes"])

        self.client.force_authenticate(self.guest)
        response = self.client.get(reverse("booking-detail", args=[booking["id"]]))
        self.assertNotIn("admin_notes", response.data)

    def test_send_confirmation_email(self) -> None:
        booking = self._create()
        self._as_admin()
        response = self._action("send-confirmation", booking["id"])
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["sent"])
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(booking["booking_number"], mail.outbox[0].subject)
        self.assertTrue(Booking.objects.get(pk=booking["id"]).confirmation_email_sent)

    # --- availability ---------------------------------------------------------
    def test_single_room_availability(self) -> None:
        self._create()
        url = reverse("booking-check-availability")

        response = self.client.post(
            url, {"room_id": self.room.pk, "check_in_date": "2025-06-12", "check_out_date": "2025-06-14"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data["available"])

        response = self.client.post(
            url, {"room_id": self.room.pk, "check_in_date": "2025-06-13", "check_out_date": "2025-06-15"}, format="json"
        )
        self.assertTrue(response.data["available"])

    def test_batch_availability(self) -> None:
        self._create()
        free_room = make_room("102")
        response = self.client.post(
            reverse("booking-check-availability"),
            {
                "room_ids": [self.room.pk, free_room.pk, 9999],
                "check_in_date": "2025-06-11",
                "check_out_date": "2025-06-12",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.json()["rooms"],
            {str(self.room.pk): False, str(free_room.pk): True, "9999": False},
        )

    def test_availability_needs_exactly_one_room_selector(self) -> None:
        response = self.client.post(
            reverse("booking-check-availability"),
            {"check_in_date": "2025-06-11", "check_out_date": "2025-06-12"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unavailable_dates_include_checkout_day(self) -> None:
        self._create()
        response = self.client.get(
            reverse("booking-unavailable-dates", kwargs={"room_id": self.room.pk}),
            {"start_date": "2025-06-01", "end_date": "2025-06-30"},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.json()["unavailable_dates"],
            ["2025-06-10", "2025-06-11", "2025-06-12", "2025-06-13"],
        )
