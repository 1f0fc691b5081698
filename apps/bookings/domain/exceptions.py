"""
Booking Domain Exceptions

Every failure of a booking operation is one of these. The kind (not found,
validation, conflict) comes from the shared taxonomy and decides the HTTP
status; ``code`` is the stable machine-readable reason.
"""

from shared.domain.exceptions import ConflictError, DomainError, DomainValidationError, NotFoundError


class BookingError(DomainError):
    """Base class for booking failures"""
    code = 'booking_error'


class BookingNotFound(BookingError, NotFoundError):
    code = 'booking_not_found'


class RoomNotFound(BookingError, NotFoundError):
    code = 'room_not_found'


class UserNotFound(BookingError, NotFoundError):
    code = 'user_not_found'


class ServiceChargeNotFound(BookingError, NotFoundError):
    code = 'service_charge_not_found'


class BookingValidationError(BookingError, DomainValidationError):
    code = 'invalid_booking'


class BookingConflictError(BookingError, ConflictError):
    code = 'booking_conflict'


class RoomUnavailableError(BookingConflictError):
    """Requested nights clash with an active booking of the room"""
    code = 'room_unavailable'


class InvalidStatusTransition(BookingConflictError):
    """The booking is not in a status the operation accepts"""
    code = 'invalid_status_transition'


class PaymentConflictError(BookingConflictError):
    """Double payment, double deposit or refund of an unpaid booking"""
    code = 'payment_conflict'
