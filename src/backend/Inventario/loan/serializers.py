"""JSON serializers for the Loan API."""

from django.utils.translation import gettext_lazy as _

from rest_framework import serializers

import stock.models as stock_models
from loan.models import Loan
from stock.serializers import AulaSerializer, ItemSerializer
from users.serializers import UserBriefSerializer


class LoanSerializer(serializers.ModelSerializer):
    """Serializer for the Loan model.

    Only the request fields (item, aula, cantidad_prestamo) can be written;
    everything else changes through the lifecycle endpoints.
    """

    class Meta:
        """Metaclass options."""

        model = Loan
        fields = [
            'pk',
            'usuario',
            'usuario_detail',
            'item',
            'item_detail',
            'aula',
            'aula_detail',
            'cantidad_prestamo',
            'estado',
            'estado_text',
            'fecha_prestamo',
            'fecha_estimada',
            'fecha_retorno',
            'overdue',
            'created_at',
            'updated_at',
        ]
        read_only_fields = [
            'usuario',
            'estado',
            'fecha_prestamo',
            'fecha_estimada',
            'fecha_retorno',
            'created_at',
            'updated_at',
        ]

    item = serializers.PrimaryKeyRelatedField(
        queryset=stock_models.Item.objects.all(), label=_('Item')
    )

    aula = serializers.PrimaryKeyRelatedField(
        queryset=stock_models.Aula.objects.all(),
        label=_('Classroom'),
        required=False,
        allow_null=True,
    )

    cantidad_prestamo = serializers.IntegerField(min_value=1, label=_('Quantity'))

    usuario_detail = UserBriefSerializer(source='usuario', read_only=True)

    item_detail = ItemSerializer(source='item', read_only=True)

    aula_detail = AulaSerializer(source='aula', read_only=True, allow_null=True)

    estado_text = serializers.CharField(source='get_estado_display', read_only=True)

    overdue = serializers.BooleanField(source='is_overdue', read_only=True)

    def create(self, validated_data):
        """Submit the loan request on behalf of the requesting user."""
        request = self.context['request']

        return Loan.create_request(
            usuario=request.user,
            item=validated_data['item'],
            aula=validated_data.get('aula'),
            cantidad_prestamo=validated_data['cantidad_prestamo'],
        )

    def update(self, instance, validated_data):
        """Loans cannot be edited once submitted."""
        raise serializers.ValidationError(_('Loans cannot be edited'))


class LoanApproveSerializer(serializers.Serializer):
    """Serializer for approving a Loan."""

    class Meta:
        """Metaclass options."""

        fields = ['fecha_estimada']

    fecha_estimada = serializers.DateField(
        required=False,
        allow_null=True,
        label=_('Estimated Return Date'),
    )

    def save(self):
        """Approve the loan and return it."""
        loan = self.context['loan']
        return loan.approve_loan(self.validated_data.get('fecha_estimada'))


class LoanRejectSerializer(serializers.Serializer):
    """Serializer for rejecting a Loan."""

    class Meta:
        """Metaclass options."""

        fields = []

    def save(self):
        """Reject the loan and return it."""
        loan = self.context['loan']
        return loan.reject_loan()


class LoanReturnSerializer(serializers.Serializer):
    """Serializer for marking a Loan as returned."""

    class Meta:
        """Metaclass options."""

        fields = []

    def save(self):
        """Mark the loan as returned and return it."""
        loan = self.context['loan']
        return loan.return_loan()


class LoanDeferSerializer(serializers.Serializer):
    """Serializer for moving the return date of a Loan."""

    class Meta:
        """Metaclass options."""

        fields = ['fecha_estimada']

    fecha_estimada = serializers.DateField(
        required=False,
        allow_null=True,
        label=_('New Return Date'),
    )

    def save(self):
        """Defer the loan and return it."""
        loan = self.context['loan']
        return loan.defer_loan(self.validated_data.get('fecha_estimada'))
