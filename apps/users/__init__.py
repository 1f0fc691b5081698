"""Users app package.

Email-login accounts for guests and hotel staff. Use
``apps.users.models.CustomUser`` as the AUTH_USER_MODEL throughout the
project; the booking engine resolves accounts through
``apps.users.services``.
"""
