"""Notifications app package.

Guest emails for bookings: confirmation on creation and check-in
reminders, sent through Celery tasks and the Django mail backend.
"""
