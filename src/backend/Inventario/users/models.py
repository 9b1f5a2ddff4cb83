"""User model definitions."""

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils.translation import gettext_lazy as _


class UserRole(models.TextChoices):
    """Roles a user can hold. Only 'Admin' carries elevated rights."""

    ADMIN = 'Admin', _('Admin')
    DOCENTE = 'Docente', _('Teacher')
    ESTUDIANTE = 'Estudiante', _('Student')


class User(AbstractUser):
    """A person who can request loans.

    Attributes:
        nombre: Display name used in notifications
        rol: Role of the user, see UserRole
    """

    nombre = models.CharField(
        max_length=150,
        blank=True,
        verbose_name=_('Name'),
        help_text=_('Display name'),
    )

    rol = models.CharField(
        max_length=20,
        choices=UserRole.choices,
        default=UserRole.ESTUDIANTE,
        verbose_name=_('Role'),
    )

    def __str__(self):
        """Render a string representation of this User."""
        return self.nombre or self.get_username()

    @property
    def is_admin(self) -> bool:
        """Return True if this user holds the admin role."""
        return self.rol == UserRole.ADMIN

    @property
    def display_name(self) -> str:
        """Name used when addressing the user."""
        return self.nombre or self.get_full_name() or self.get_username()
