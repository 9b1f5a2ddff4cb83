"""Admin interface for stock models."""

from django.contrib import admin

from stock import models


@admin.register(models.Item)
class ItemAdmin(admin.ModelAdmin):
    """Admin interface for Item model.

    The available quantity only moves through loan approvals and returns.
    """

    list_display = ['nombre', 'cantidad_disponible', 'cantidad_total_stock']

    readonly_fields = ['cantidad_disponible']

    search_fields = ['nombre', 'descripcion']

    def save_model(self, request, obj, form, change):
        """Changes never write back a stale available quantity."""
        if change:
            obj.save(update_fields=form.changed_data)
        else:
            super().save_model(request, obj, form, change)


@admin.register(models.Aula)
class AulaAdmin(admin.ModelAdmin):
    """Admin interface for Aula model."""

    list_display = ['nombre', 'descripcion']

    search_fields = ['nombre']
