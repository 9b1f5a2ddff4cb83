"""Admin interface for user models."""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from users.models import User


@admin.register(User)
class InventarioUserAdmin(UserAdmin):
    """Admin interface for the User model, exposing the role."""

    list_display = ['username', 'email', 'nombre', 'rol', 'is_active']
    list_filter = ['rol', 'is_active']
    fieldsets = UserAdmin.fieldsets + ((None, {'fields': ('nombre', 'rol')}),)
