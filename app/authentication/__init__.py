"""
Authentication application.

Holds the fan/staff User model. Login and session management live in
front of this service; the ticketing and payments apps only need to
reference users by id and create them on first sight.

Usage:
    from authentication.models import User

    user, created = User.objects.ensure_exists(user_id)
"""
