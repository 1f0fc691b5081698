"""Analytics app package: administrator reports over bookings."""
