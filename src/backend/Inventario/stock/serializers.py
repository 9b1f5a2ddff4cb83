"""JSON serializers for the Stock API."""

from django.utils.translation import gettext_lazy as _

from rest_framework import serializers

from stock import models


class AulaSerializer(serializers.ModelSerializer):
    """Serializer for the Aula model."""

    class Meta:
        """Metaclass options."""

        model = models.Aula
        fields = ['pk', 'nombre', 'descripcion']


class ItemSerializer(serializers.ModelSerializer):
    """Serializer for the Item model.

    Stock counters are managed by the loan workflow, so they can only be
    given when the item is first created.
    """

    class Meta:
        """Metaclass options."""

        model = models.Item
        fields = [
            'pk',
            'nombre',
            'descripcion',
            'cantidad_disponible',
            'cantidad_total_stock',
            'cantidad_prestada',
        ]

    cantidad_disponible = serializers.IntegerField(required=False, min_value=0)

    cantidad_total_stock = serializers.IntegerField(required=False, min_value=0)

    cantidad_prestada = serializers.IntegerField(read_only=True)

    def validate(self, data):
        """Validate the stock counters."""
        data = super().validate(data)

        counters = {'cantidad_disponible', 'cantidad_total_stock'}

        if self.instance is not None:
            if counters & set(data.keys()):
                raise serializers.ValidationError(
                    _('Stock quantities cannot be edited once the item exists')
                )
            return data

        total = data.get('cantidad_total_stock', 0)
        disponible = data.get('cantidad_disponible', total)

        if disponible > total:
            raise serializers.ValidationError({
                'cantidad_disponible': _('Available quantity cannot exceed total stock')
            })

        return data
