import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

PAYMENT_METHODS = [
    ("CASH", "Cash"),
    ("CREDIT_CARD", "Credit card"),
    ("DEBIT_CARD", "Debit card"),
    ("BANK_TRANSFER", "Bank transfer"),
    ("E_WALLET", "E-wallet"),
    ("PAYPAL", "PayPal"),
]


def money():
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("rooms", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="BookingNumberSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("day", models.DateField(unique=True)),
                ("last_value", models.PositiveIntegerField(default=0)),
            ],
            options={
                "verbose_name": "Booking number sequence",
                "verbose_name_plural": "Booking number sequences",
            },
        ),
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_number", models.CharField(editable=False, max_length=14, unique=True)),
                ("user_email", models.EmailField(blank=True, max_length=254)),
                ("user_full_name", models.CharField(blank=True, max_length=255)),
                ("user_phone", models.CharField(blank=True, max_length=20)),
                ("room_number", models.CharField(blank=True, max_length=20)),
                ("room_name", models.CharField(blank=True, max_length=255)),
                ("room_type", models.CharField(blank=True, max_length=20)),
                ("group_booking_id", models.CharField(blank=True, db_index=True, max_length=16)),
                ("is_group_booking", models.BooleanField(default=False)),
                ("check_in_date", models.DateField()),
                ("check_out_date", models.DateField()),
                ("actual_check_in_time", models.DateTimeField(blank=True, null=True)),
                ("actual_check_out_time", models.DateTimeField(blank=True, null=True)),
                ("is_early_check_in", models.BooleanField(default=False)),
                ("early_check_in_fee", money()),
                ("is_late_check_out", models.BooleanField(default=False)),
                ("late_check_out_fee", money()),
                ("number_of_guests", models.PositiveSmallIntegerField(default=1)),
                ("number_of_children", models.PositiveSmallIntegerField(default=0)),
                ("currency", models.CharField(default="VND", max_length=3)),
                ("room_price_per_night", money()),
                ("number_of_nights", models.PositiveSmallIntegerField(default=1)),
                ("subtotal", money()),
                ("tax_amount", money()),
                ("service_charge", money()),
                ("discount", money()),
                ("additional_charges_total", money()),
                ("total_amount", money()),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("UNPAID", "Unpaid"),
                            ("PARTIALLY_PAID", "Partially paid"),
                            ("PAID", "Paid"),
                            ("REFUNDED", "Refunded"),
                            ("FAILED", "Failed"),
                        ],
                        default="UNPAID",
                        max_length=20,
                    ),
                ),
                ("payment_method", models.CharField(blank=True, choices=PAYMENT_METHODS, max_length=20)),
                ("payment_transaction_id", models.CharField(blank=True, max_length=100)),
                ("payment_date", models.DateTimeField(blank=True, null=True)),
                ("deposit_amount", money()),
                ("deposit_paid", models.BooleanField(default=False)),
                ("deposit_paid_date", models.DateTimeField(blank=True, null=True)),
                ("deposit_payment_method", models.CharField(blank=True, choices=PAYMENT_METHODS, max_length=20)),
                ("deposit_transaction_id", models.CharField(blank=True, max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("PENDING", "Pending"),
                            ("CONFIRMED", "Confirmed"),
                            ("CHECKED_IN", "Checked in"),
                            ("CHECKED_OUT", "Checked out"),
                            ("CANCELLED", "Cancelled"),
                            ("NO_SHOW", "No show"),
                            ("COMPLETED", "Completed"),
                        ],
                        default="PENDING",
                        max_length=20,
                    ),
                ),
                ("special_requests", models.TextField(blank=True)),
                ("added_services", models.JSONField(blank=True, default=list)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=500)),
                ("cancellation_fee", money()),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("admin_notes", models.TextField(blank=True)),
                (
                    "booking_source",
                    models.CharField(
                        choices=[
                            ("WEBSITE", "Website"),
                            ("MOBILE_APP", "Mobile app"),
                            ("PHONE", "Phone"),
                            ("WALK_IN", "Walk-in"),
                            ("OTA", "Online travel agency"),
                        ],
                        default="WEBSITE",
                        max_length=20,
                    ),
                ),
                ("room_cleaned_after_checkout", models.BooleanField(blank=True, null=True)),
                ("confirmation_email_sent", models.BooleanField(default=False)),
                ("reminder_email_sent", models.BooleanField(default=False)),
                (
                    "cancelled_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="cancelled_bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="rooms.room",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("check_out_date__gt", models.F("check_in_date"))),
                        name="booking_valid_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total_amount__gte", 0)),
                        name="booking_non_negative_total",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["room", "check_in_date", "check_out_date"], name="booking_room_dates_idx"),
                    models.Index(fields=["user", "status"], name="booking_user_status_idx"),
                    models.Index(fields=["status", "check_in_date"], name="booking_status_checkin_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingGuest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_primary", models.BooleanField(default=False)),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("full_name", models.CharField(max_length=255)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("email", models.EmailField(blank=True, max_length=254)),
                ("national_id", models.CharField(blank=True, db_index=True, max_length=20)),
                ("nationality", models.CharField(blank=True, max_length=100)),
                ("address", models.CharField(blank=True, max_length=500)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="guests",
                        to="bookings.booking",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking guest",
                "verbose_name_plural": "Booking guests",
                "ordering": ["-is_primary", "position"],
            },
        ),
        migrations.CreateModel(
            name="ServiceCharge",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "service_type",
                    models.CharField(
                        choices=[
                            ("MINIBAR", "Minibar"),
                            ("LAUNDRY", "Laundry"),
                            ("ROOM_SERVICE", "Room service"),
                            ("SPA", "Spa"),
                            ("PARKING", "Parking"),
                            ("PHONE", "Phone"),
                            ("OTHER", "Other"),
                        ],
                        default="OTHER",
                        max_length=20,
                    ),
                ),
                ("description", models.CharField(max_length=255)),
                ("unit_amount", models.DecimalField(decimal_places=2, max_digits=14)),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("charged_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                (
                    "added_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="service_charges",
                        to="bookings.booking",
                    ),
                ),
                (
                    "voided_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Service charge",
                "verbose_name_plural": "Service charges",
                "ordering": ["charged_at"],
            },
        ),
    ]
