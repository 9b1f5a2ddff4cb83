"""Access policy for loan records.

Every read of a loan goes through these checks: a user sees their own
loans, an admin sees all of them.
"""

from rest_framework import permissions


def is_admin(user) -> bool:
    """Return True if the user holds the admin role."""
    return bool(user and getattr(user, 'is_admin', False))


def can_view(user, loan) -> bool:
    """Return True if the user may read the given loan."""
    if user is None:
        return False

    return is_admin(user) or user.pk == loan.usuario_id


def list_scope(user, queryset):
    """Restrict a Loan queryset to the records visible to the user."""
    if is_admin(user):
        return queryset

    if user is None or user.pk is None:
        return queryset.none()

    return queryset.filter(usuario=user)


class IsLoanAdmin(permissions.BasePermission):
    """Only admins can change the state of a loan."""

    def has_permission(self, request, view):
        """Check the role of the requesting user."""
        return is_admin(request.user)
