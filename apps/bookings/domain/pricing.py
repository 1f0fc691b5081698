"""
Pricing Calculator

Pure computation of a booking's monetary breakdown:

    subtotal     = price_per_night x nights
    tax          = subtotal x TAX_RATE
    service      = subtotal x SERVICE_CHARGE_RATE
    total        = subtotal + tax + service + early fee + late fee
                   + sum(unit_amount x quantity) - discount

Nothing here touches the database. Callers pass the current inputs and
persist the returned figures; total_amount is never edited by hand.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.exceptions import BookingValidationError


@dataclass(frozen=True)
class ChargeLine(ValueObject):
    """One incidental charge: unit price and quantity"""
    unit_amount: Decimal
    quantity: int = 1

    @property
    def line_total(self) -> Decimal:
        return Decimal(str(self.unit_amount)) * self.quantity


@dataclass(frozen=True)
class PriceBreakdown(ValueObject):
    price_per_night: Money
    nights: int
    subtotal: Money
    tax: Money
    service_charge: Money
    early_check_in_fee: Money
    late_check_out_fee: Money
    additional_charges_total: Money
    discount: Money
    total: Money

    def deposit(self, rate: Decimal) -> Money:
        """Advance payment owed for this total"""
        return self.total * rate

    def as_fields(self) -> dict:
        """Column values for the booking row"""
        return {
            'room_price_per_night': self.price_per_night.amount,
            'number_of_nights': self.nights,
            'subtotal': self.subtotal.amount,
            'tax_amount': self.tax.amount,
            'service_charge': self.service_charge.amount,
            'early_check_in_fee': self.early_check_in_fee.amount,
            'late_check_out_fee': self.late_check_out_fee.amount,
            'additional_charges_total': self.additional_charges_total.amount,
            'discount': self.discount.amount,
            'total_amount': self.total.amount,
        }


def _money(value, currency: str) -> Money:
    if isinstance(value, Money):
        return value
    return Money(Decimal(str(value or 0)), currency)


def calculate_price(
    price_per_night,
    dates: DateRange,
    *,
    tax_rate: Decimal,
    service_charge_rate: Decimal,
    discount=0,
    early_check_in_fee=0,
    late_check_out_fee=0,
    charges: Iterable = (),
    currency: str = 'VND',
) -> PriceBreakdown:
    """
    Compute the full breakdown for a stay

    ``charges`` is any iterable of objects exposing ``unit_amount`` and
    ``quantity`` (ChargeLine or the ServiceCharge model).

    Raises:
        BookingValidationError: if the discount is outside [0, subtotal]
    """
    rate = _money(price_per_night, currency)
    nights = len(dates)
    subtotal = rate * nights

    discount_value = Decimal(str(discount or 0))
    if discount_value < 0 or discount_value > subtotal.amount:
        raise BookingValidationError(
            f"Discount must be between 0 and the subtotal {subtotal}",
            field='discount',
            details={'discount': discount_value, 'subtotal': subtotal.amount},
        )
    discount_money = Money(discount_value, currency)

    charges_total = Money.zero(currency)
    for charge in charges:
        line_total = Decimal(str(charge.unit_amount)) * charge.quantity
        charges_total = charges_total + Money(line_total, currency)

    tax = subtotal * tax_rate
    service = subtotal * service_charge_rate
    early = _money(early_check_in_fee, currency)
    late = _money(late_check_out_fee, currency)

    total = subtotal + tax + service + early + late + charges_total - discount_money

    return PriceBreakdown(
        price_per_night=rate,
        nights=nights,
        subtotal=subtotal,
        tax=tax,
        service_charge=service,
        early_check_in_fee=early,
        late_check_out_fee=late,
        additional_charges_total=charges_total,
        discount=discount_money,
        total=total,
    )
