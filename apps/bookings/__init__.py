"""Bookings app package.

This app encapsulates the booking domain: pricing, room availability,
the booking lifecycle (confirm, check-in, check-out, cancellation,
no-show), payments, service charges, search and reports. Double
bookings are prevented by locking the room row around the overlap
check and the insert.
"""
