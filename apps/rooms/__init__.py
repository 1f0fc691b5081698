"""Rooms app package.

Room catalog consumed by the booking engine: nightly rate, capacity,
housekeeping status and booking counters. Rooms are managed through the
Django admin; the booking engine only reads them and moves their status.
"""
