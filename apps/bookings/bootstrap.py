"""
Message bus wiring for the booking domain

Builds every command handler with its repositories and registers it on
the global message bus. Event subscribers from other apps register
themselves in their own AppConfig.ready().
"""

import logging

from shared.application.message_bus import MessageBus, message_bus
from apps.bookings.application import command_handlers as h
from apps.bookings.infrastructure.repositories import BookingRepository, InventoryRepository

logger = logging.getLogger(__name__)


def bootstrap(bus: MessageBus = message_bus) -> MessageBus:
    """Register the booking command handlers; safe to call more than once"""
    bookings = BookingRepository()
    inventory = InventoryRepository()
    create = h.CreateBookingHandler(bookings, inventory)

    handlers = {
        h.CreateBookingCommand: create,
        h.CreateGroupBookingCommand: h.CreateGroupBookingHandler(bookings, inventory, create),
        h.UpdateBookingCommand: h.UpdateBookingHandler(bookings, inventory),
        h.CancelBookingCommand: h.CancelBookingHandler(bookings),
        h.ConfirmBookingCommand: h.ConfirmBookingHandler(bookings),
        h.CheckInBookingCommand: h.CheckInBookingHandler(bookings),
        h.CheckOutBookingCommand: h.CheckOutBookingHandler(bookings),
        h.MarkNoShowCommand: h.MarkNoShowHandler(bookings),
        h.CompleteBookingCommand: h.CompleteBookingHandler(bookings),
        h.ProcessPaymentCommand: h.ProcessPaymentHandler(bookings),
        h.ProcessDepositCommand: h.ProcessDepositHandler(bookings),
        h.RefundBookingCommand: h.RefundBookingHandler(bookings),
        h.AddServiceChargeCommand: h.AddServiceChargeHandler(bookings),
        h.RemoveServiceChargeCommand: h.RemoveServiceChargeHandler(bookings),
        h.ApplyDiscountCommand: h.ApplyDiscountHandler(bookings),
        h.ApproveEarlyCheckInCommand: h.ApproveEarlyCheckInHandler(bookings),
        h.ApproveLateCheckOutCommand: h.ApproveLateCheckOutHandler(bookings),
        h.AddAdminNotesCommand: h.AddAdminNotesHandler(bookings),
        h.MarkRoomCleanedCommand: h.MarkRoomCleanedHandler(bookings),
    }
    for command_type, handler in handlers.items():
        if bus.has_command_handler(command_type):
            continue
        bus.register_command_handler(command_type, handler.handle)

    logger.debug(f"Booking bus ready with {len(handlers)} command handlers")
    return bus
