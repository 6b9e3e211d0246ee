"""
Authentication models.

- User: Slim user model. Purchasers, pass holders and gate stewards are
  all users; profile data lives outside this service.

Related files:
    - managers.py: Custom user manager (email creation, ensure_exists)
"""

import uuid

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model with a UUID primary key and optional email.

    Fields:
        id: UUID supplied by the identity provider or generated
        email: Optional login identifier, unique when present
        phone_number: Mobile money number, when known
        locale: Preferred language for notifications ("rw", "en", "fr")
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin (stewards, finance)
        date_joined: When the user record was created
    """

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False,
    )
    email = models.EmailField(
        unique=True,
        null=True,
        blank=True,
        max_length=254,
        help_text="Login email address (optional)",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Mobile money number",
    )
    locale = models.CharField(
        max_length=8,
        default="rw",
        help_text="Preferred notification language",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )
    date_joined = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email or str(self.id)

    def get_full_name(self):
        return self.email or str(self.id)

    def get_short_name(self):
        if self.email:
            return self.email.split("@")[0]
        return str(self.id)[:8]
