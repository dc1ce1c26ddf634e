"""
Accounts app models.

Defines the portal's four system roles and a custom User model that
extends Django's ``AbstractUser``.  Every user holds exactly one role;
the role is the only authorization axis used by the complaint engine.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class UserRole(models.TextChoices):
    """
    Canonical role codes.  ``Role.name`` stores one of these values (or
    its label; see ``core.domain.access.normalize_role_name``).
    """

    CITIZEN = "CITIZEN", "Citizen"
    WARD_OFFICER = "WARD_OFFICER", "Ward Officer"
    MAINTENANCE_TEAM = "MAINTENANCE_TEAM", "Maintenance Team"
    ADMINISTRATOR = "ADMINISTRATOR", "Administrator"


class Role(models.Model):
    """
    Admin-manageable role record.

    The four default roles are seeded by the ``setup_roles`` management
    command.  ``name`` is the machine code (``UserRole`` value); the
    human label comes from ``get_name_display()``.
    """

    name = models.CharField(
        max_length=32,
        unique=True,
        choices=UserRole.choices,
        verbose_name="Role Code",
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name="Description",
    )

    class Meta:
        verbose_name = "Role"
        verbose_name_plural = "Roles"
        ordering = ["name"]

    def __str__(self):
        return self.get_name_display()


class User(AbstractUser):
    """
    Portal user.

    Citizens self-register; ward officers, maintenance-team members and
    administrators are provisioned by an administrator.  ``ward`` scopes
    ward officers and maintenance teams to a geographic ward and is used
    by the user directory when listing assignable candidates.
    """

    email = models.EmailField(
        unique=True,
        verbose_name="Email Address",
    )
    full_name = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Full Name",
    )
    phone_number = models.CharField(
        max_length=20,
        blank=True,
        default="",
        verbose_name="Phone Number",
    )
    ward = models.CharField(
        max_length=100,
        blank=True,
        default="",
        db_index=True,
        verbose_name="Ward",
    )

    # ── Single-role assignment ──────────────────────────────────────
    role = models.ForeignKey(
        Role,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="users",
        verbose_name="Assigned Role",
    )

    REQUIRED_FIELDS = ["email"]

    class Meta:
        verbose_name = "User"
        verbose_name_plural = "Users"

    def __str__(self):
        role_name = self.role.get_name_display() if self.role else "No Role"
        return f"{self.username} ({self.display_name}) - {role_name}"

    def get_full_name(self) -> str:
        return self.full_name or super().get_full_name()

    @property
    def display_name(self) -> str:
        """Full name, falling back to email, then username."""
        return self.get_full_name() or self.email or self.username

    def has_role(self, role_code: str) -> bool:
        """Check if the user's current role matches the given code."""
        return self.role is not None and self.role.name == role_code
