"""Admin interface for loan models."""

from django.contrib import admin

from loan import models


@admin.register(models.Loan)
class LoanAdmin(admin.ModelAdmin):
    """Admin interface for Loan model.

    The state and dates are read-only here: they are coupled to the item
    stock and can only change through the loan workflow.
    """

    list_display = [
        'pk',
        'usuario',
        'item',
        'aula',
        'cantidad_prestamo',
        'estado',
        'fecha_prestamo',
        'fecha_estimada',
        'fecha_retorno',
    ]

    list_filter = ['estado', 'fecha_estimada']

    search_fields = ['usuario__username', 'usuario__nombre', 'item__nombre']

    readonly_fields = [
        'estado',
        'fecha_prestamo',
        'fecha_estimada',
        'fecha_retorno',
        'created_at',
        'updated_at',
    ]

    raw_id_fields = ['usuario', 'item', 'aula']

    # The approved units are held against this borrower, item and quantity
    locked_fields = ['usuario', 'item', 'cantidad_prestamo']

    def get_readonly_fields(self, request, obj=None):
        """Existing loans keep the borrower, item and quantity they were requested with."""
        fields = list(super().get_readonly_fields(request, obj))

        if obj is not None:
            fields += self.locked_fields

        return fields

    def save_model(self, request, obj, form, change):
        """Only write the fields edited in the form, never the workflow columns."""
        if change:
            obj.save(update_fields=[*form.changed_data, 'updated_at'])
        else:
            super().save_model(request, obj, form, change)
