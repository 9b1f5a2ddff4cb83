"""JSON API for the Loan app."""

from django.urls import include, path
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

import django_filters.rest_framework.filters as rest_filters
import structlog
from django_filters.rest_framework.filterset import FilterSet
from rest_framework import generics, permissions, status
from rest_framework.response import Response

from Inventario.exceptions import NotFound
from loan import models, serializers
from loan.access import IsLoanAdmin
from loan.filters import filter_closed_loans, filter_open_loans
from loan.status_codes import LoanStatus

logger = structlog.get_logger('inventario')


class LoanFilter(FilterSet):
    """Custom filters for LoanList endpoint."""

    class Meta:
        """Metaclass options."""

        model = models.Loan
        fields = ['item', 'aula']

    estado = rest_filters.ChoiceFilter(
        label=_('Status'), choices=LoanStatus.choices, field_name='estado'
    )

    overdue = rest_filters.BooleanFilter(label=_('Overdue'), method='filter_overdue')

    def filter_overdue(self, queryset, name, value):
        """Filter by loans out past their estimated return date."""
        overdue = queryset.checked_out().filter(fecha_estimada__lt=timezone.localdate())

        if value:
            return overdue
        return queryset.exclude(pk__in=overdue.values('pk'))

    outstanding = rest_filters.BooleanFilter(
        label=_('Outstanding'), method='filter_outstanding'
    )

    def filter_outstanding(self, queryset, name, value):
        """Filter by loans still needing attention, or by closed loans."""
        if value:
            return queryset.filter(filter_open_loans())
        return queryset.filter(filter_closed_loans())


class LoanList(generics.ListCreateAPIView):
    """API endpoint for accessing a list of Loan objects.

    - GET: Return the loans visible to the user, newest first
    - POST: Submit a new loan request
    """

    serializer_class = serializers.LoanSerializer
    filterset_class = LoanFilter

    def get_queryset(self):
        """Restrict the list to the loans the user may see."""
        return models.Loan.objects.for_user(self.request.user)


class LoanDetail(generics.RetrieveDestroyAPIView):
    """API endpoint for detail view of a Loan object.

    - GET: Return the loan (borrower or admin only)
    - DELETE: Remove the loan (admin only). Stock is not restored.
    """

    serializer_class = serializers.LoanSerializer

    def get_permissions(self):
        """Deleting requires the admin role."""
        if self.request.method == 'DELETE':
            return [permissions.IsAuthenticated(), IsLoanAdmin()]
        return super().get_permissions()

    def get_object(self):
        """Fetch the loan through the access policy."""
        return models.Loan.get_for_user(self.request.user, self.kwargs.get('pk'))

    def destroy(self, request, *args, **kwargs):
        """Delete the loan without touching the item stock."""
        loan = models.Loan.delete_loan(self.kwargs.get('pk'))

        logger.info('Loan deleted via API', user=request.user.pk, item=loan.item_id)

        return Response(status=status.HTTP_204_NO_CONTENT)


class LoanContextMixin:
    """Mixin to add the loan object as serializer context variable."""

    queryset = models.Loan.objects.all()
    permission_classes = [permissions.IsAuthenticated, IsLoanAdmin]

    def get_serializer_context(self):
        """Add loan to the serializer context."""
        ctx = super().get_serializer_context()
        ctx['loan'] = self.get_object()
        return ctx

    def get_object(self):
        """Return the Loan instance."""
        if not hasattr(self, '_object'):
            loan = models.Loan.objects.filter(pk=self.kwargs.get('pk')).first()
            if loan is None:
                raise NotFound(_('Loan not found'))
            self._object = loan
        return self._object

    def create(self, request, *args, **kwargs):
        """Run the transition and return the updated loan."""
        loan = self.get_object()

        logger.info(
            'Loan transition requested',
            view=self.__class__.__name__,
            loan=loan.pk,
            user=request.user.pk,
            estado=loan.estado,
        )

        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        loan = serializer.save()

        loan_serializer = serializers.LoanSerializer(
            loan, context=self.get_serializer_context()
        )
        return Response(loan_serializer.data, status=status.HTTP_200_OK)


class LoanApprove(LoanContextMixin, generics.CreateAPIView):
    """API endpoint to approve a Loan and reserve its stock."""

    serializer_class = serializers.LoanApproveSerializer


class LoanReject(LoanContextMixin, generics.CreateAPIView):
    """API endpoint to reject a Loan request."""

    serializer_class = serializers.LoanRejectSerializer


class LoanReturn(LoanContextMixin, generics.CreateAPIView):
    """API endpoint to mark a Loan as returned and restore its stock."""

    serializer_class = serializers.LoanReturnSerializer


class LoanDefer(LoanContextMixin, generics.CreateAPIView):
    """API endpoint to move the return date of a Loan."""

    serializer_class = serializers.LoanDeferSerializer


# URL patterns

loan_api_urls = [
    path(
        '<int:pk>/',
        include([
            path('approve/', LoanApprove.as_view(), name='api-loan-approve'),
            path('reject/', LoanReject.as_view(), name='api-loan-reject'),
            path('return/', LoanReturn.as_view(), name='api-loan-return'),
            path('defer/', LoanDefer.as_view(), name='api-loan-defer'),
            path('', LoanDetail.as_view(), name='api-loan-detail'),
        ]),
    ),
    path('', LoanList.as_view(), name='api-loan-list'),
]
