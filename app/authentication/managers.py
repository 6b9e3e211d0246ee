"""
Custom user manager.

Fans are frequently known only by an id handed over from the upstream
identity provider (checkout, transfer claims), so besides email-based
creation the manager supports create-if-absent by primary key.

Related files:
    - models.py: User model that uses this manager
"""

import logging

from django.contrib.auth.models import BaseUserManager

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager):
    """
    Custom manager for User model.

    Usage:
        user = User.objects.create_user(email="fan@example.com", password="secret")

        # Purchaser referenced by an external id
        user, created = User.objects.ensure_exists(user_id)
    """

    def create_user(self, email=None, password=None, **extra_fields):
        """
        Create and save a regular user.

        Email is optional: fans paying by mobile money may never give one.
        """
        if email:
            email = self.normalize_email(email)
        else:
            email = None

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """Create and save a superuser with the given email and password."""
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("is_active", True)

        if not email:
            raise ValueError("Superuser must have an email")
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)

    def ensure_exists(self, user_id):
        """
        Return the user with this id, creating a bare record if absent.

        Args:
            user_id: Primary key (UUID or its string form)

        Returns:
            Tuple of (user, created)
        """
        user, created = self.get_or_create(id=user_id)
        if created:
            user.set_unusable_password()
            user.save(update_fields=["password"])
            logger.info("Created placeholder user", extra={"user_id": str(user.id)})
        return user, created
