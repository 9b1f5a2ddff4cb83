"""Loan model definitions."""

from typing import Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.urls import reverse
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

import structlog

from Inventario.exceptions import (
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotFound,
    ValidationError,
)
from Inventario.tasks import offload_task
from loan import access
from loan.events import LoanEvents
from loan.filters import filter_checked_out_loans
from loan.status_codes import LoanStatus, LoanStatusGroups
from stock.models import Item

logger = structlog.get_logger('inventario')


# Allowed status transitions for Loan
ALLOWED_TRANSITIONS = {
    LoanStatus.PENDIENTE.value: [
        LoanStatus.APROBADO.value,
        LoanStatus.RECHAZADO.value,
    ],
    LoanStatus.APROBADO.value: [
        LoanStatus.APLAZADO.value,
        LoanStatus.DEVUELTO.value,
    ],
    LoanStatus.APLAZADO.value: [
        LoanStatus.APLAZADO.value,  # The return date can be moved again
        LoanStatus.DEVUELTO.value,
    ],
    LoanStatus.RECHAZADO.value: [],  # Terminal state
    LoanStatus.DEVUELTO.value: [],  # Terminal state
}


class LoanQuerySet(models.QuerySet):
    """Custom queryset for the Loan model."""

    def with_related(self):
        """Load the borrower, item and classroom along with each loan."""
        return self.select_related('usuario', 'item', 'aula')

    def for_user(self, user, estado: Optional[str] = None):
        """Return the loans visible to a user, newest first.

        Arguments:
            user: The requesting user (admins see every loan)
            estado: Optional state to filter by
        """
        queryset = access.list_scope(user, self.with_related())

        if estado:
            queryset = queryset.filter(estado=estado)

        return queryset.order_by('-created_at', '-pk')

    def checked_out(self):
        """Return loans whose units are currently out."""
        return self.filter(filter_checked_out_loans())


class Loan(models.Model):
    """A Loan represents units of an Item lent to a user for use in a classroom.

    A loan starts as a request ('Pendiente'). Stock is only taken when the
    loan is approved, and given back when it is returned.

    Attributes:
        usuario: The borrower
        item: The item being lent
        aula: Classroom where the item will be used
        cantidad_prestamo: Number of units requested (fixed at creation)
        estado: Current state, see LoanStatus
        fecha_prestamo: When the loan was approved
        fecha_estimada: Expected return date
        fecha_retorno: When the units were returned
        created_at: When the request was submitted
        updated_at: Last modification
    """

    class Meta:
        """Model meta options."""

        verbose_name = _('Loan')
        verbose_name_plural = _('Loans')
        ordering = ['-created_at', '-pk']

    objects = LoanQuerySet.as_manager()

    usuario = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='prestamos',
        verbose_name=_('Borrower'),
    )

    item = models.ForeignKey(
        Item,
        on_delete=models.SET_NULL,
        null=True,
        related_name='prestamos',
        verbose_name=_('Item'),
    )

    aula = models.ForeignKey(
        'stock.Aula',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='prestamos',
        verbose_name=_('Classroom'),
    )

    cantidad_prestamo = models.PositiveIntegerField(
        validators=[MinValueValidator(1)],
        verbose_name=_('Quantity'),
        help_text=_('Number of units requested'),
    )

    estado = models.CharField(
        max_length=20,
        choices=LoanStatus.choices,
        default=LoanStatus.PENDIENTE,
        verbose_name=_('Status'),
    )

    fecha_prestamo = models.DateTimeField(
        blank=True, null=True, verbose_name=_('Loan Date')
    )

    fecha_estimada = models.DateField(
        blank=True,
        null=True,
        verbose_name=_('Estimated Return Date'),
        help_text=_('Expected return date'),
    )

    fecha_retorno = models.DateTimeField(
        blank=True, null=True, verbose_name=_('Return Date')
    )

    created_at = models.DateTimeField(auto_now_add=True, verbose_name=_('Created'))

    updated_at = models.DateTimeField(auto_now=True, verbose_name=_('Updated'))

    def __str__(self):
        """Render a string representation of this Loan."""
        item = self.item.nombre if self.item else _('deleted')
        return f'#{self.pk} - {item} x{self.cantidad_prestamo} ({self.estado})'

    def clean(self):
        """Custom clean method for Loan."""
        super().clean()

        if (
            self.fecha_estimada
            and self.fecha_prestamo
            and self.fecha_estimada < timezone.localdate(self.fecha_prestamo)
        ):
            raise DjangoValidationError({
                'fecha_estimada': _('Estimated return date cannot be before the loan date')
            })

    @staticmethod
    def get_api_url() -> str:
        """Return the API URL associated with the Loan model."""
        return reverse('api-loan-list')

    # region Properties

    @property
    def is_pending(self) -> bool:
        """Return True if the Loan is waiting for a decision."""
        return self.estado == LoanStatus.PENDIENTE.value

    @property
    def is_checked_out(self) -> bool:
        """Return True if the loaned units are out of the stock."""
        return self.estado in LoanStatusGroups.CHECKED_OUT

    @property
    def is_overdue(self) -> bool:
        """Return True if the units are out past the estimated return date."""
        return (
            self.is_checked_out
            and self.fecha_estimada is not None
            and self.fecha_estimada < timezone.localdate()
        )

    @property
    def can_approve(self) -> bool:
        """Check if this loan can be approved."""
        return self._validate_transition(LoanStatus.APROBADO.value)

    @property
    def can_reject(self) -> bool:
        """Check if this loan can be rejected."""
        return self._validate_transition(LoanStatus.RECHAZADO.value)

    @property
    def can_return(self) -> bool:
        """Check if this loan can be marked as returned."""
        return self._validate_transition(LoanStatus.DEVUELTO.value)

    @property
    def can_defer(self) -> bool:
        """Check if the return date of this loan can be moved."""
        return self._validate_transition(LoanStatus.APLAZADO.value)

    # endregion

    # region Lookups

    @classmethod
    def get_for_user(cls, user, pk) -> 'Loan':
        """Fetch a single loan on behalf of a user.

        Raises:
            NotFound: No loan with this pk
            Forbidden: The user is neither the borrower nor an admin
        """
        loan = cls.objects.with_related().filter(pk=pk).first()

        if loan is None:
            raise NotFound(_('Loan not found'))

        if not access.can_view(user, loan):
            logger.warning('Loan access denied', loan=pk, user=getattr(user, 'pk', None))
            raise Forbidden(_('Not authorized to view this loan'))

        return loan

    def get_item(self) -> Item:
        """Read the current state of the loaned item from the database."""
        if self.item_id is None:
            raise NotFound(_('Item not found'))

        try:
            return Item.objects.get(pk=self.item_id)
        except Item.DoesNotExist:
            raise NotFound(_('Item not found'))

    # endregion

    # region State Transition Methods

    def _validate_transition(self, target: str) -> bool:
        """Validate that a status transition is allowed."""
        return target in ALLOWED_TRANSITIONS.get(self.estado, [])

    def _commit_transition(self, target: str, **fields) -> None:
        """Persist a state change, provided the stored state is still the one we read.

        Two callers acting on the same loan can both pass the in-memory
        checks; only the first one to write wins.
        """
        values = {'estado': target, 'updated_at': timezone.now(), **fields}

        updated = Loan.objects.filter(pk=self.pk, estado=self.estado).update(**values)

        if not updated:
            try:
                self.refresh_from_db(fields=['estado'])
            except Loan.DoesNotExist:
                raise NotFound(_('Loan not found'))

            raise InvalidState(
                _('Loan changed state to {estado} meanwhile').format(estado=self.estado)
            )

        for name, value in values.items():
            setattr(self, name, value)

    def schedule_notification(self, event: LoanEvents) -> None:
        """Queue the notification for an event once the current transaction commits.

        The notification runs on the background worker and can never
        affect the outcome of the operation which triggered it.
        """
        loan_pk = self.pk

        transaction.on_commit(
            lambda: offload_task('loan.tasks.notify_loan_event', loan_pk, event.value)
        )

    @classmethod
    def create_request(cls, usuario, item, aula=None, cantidad_prestamo: int = 1) -> 'Loan':
        """Submit a new loan request.

        Stock is not checked here; it is only taken when the loan is approved.

        Arguments:
            usuario: The borrower
            item: The requested Item
            aula: The classroom where the item will be used
            cantidad_prestamo: Number of units requested
        """
        logger.info('Creating loan request', usuario=usuario.pk)

        if item is None:
            raise ValidationError(_('An item is required'))

        if cantidad_prestamo is None or cantidad_prestamo <= 0:
            raise ValidationError(_('Quantity must be greater than zero'))

        loan = cls.objects.create(
            usuario=usuario,
            item=item,
            aula=aula,
            cantidad_prestamo=cantidad_prestamo,
        )

        logger.info('Loan created', loan=loan.pk)

        loan.schedule_notification(LoanEvents.CREATED)

        return loan

    def approve_loan(self, fecha_estimada) -> 'Loan':
        """Approve this loan and take its units out of the stock.

        The loan is written as approved before the stock is decremented.
        The decrement decides between concurrent approvals of the same
        item: if it finds too few units, the approval is reverted.

        Arguments:
            fecha_estimada: Expected return date (required)

        Raises:
            InvalidState: The loan is not pending
            ValidationError: No return date was given
            NotFound: The item no longer exists
            InsufficientStock: Not enough units available
        """
        logger.info('Approving loan', loan=self.pk, estado=self.estado)

        if not self.can_approve:
            raise InvalidState(_('The loan is not pending'))

        if not fecha_estimada:
            raise ValidationError(_('The estimated return date is required'))

        item = self.get_item()

        logger.info(
            'Item found',
            item=item.pk,
            nombre=item.nombre,
            available=item.cantidad_disponible,
        )

        if self.cantidad_prestamo > item.cantidad_disponible:
            raise InsufficientStock(
                _('Insufficient stock: requested {qty}, available {available}').format(
                    qty=self.cantidad_prestamo, available=item.cantidad_disponible
                )
            )

        self._commit_transition(
            LoanStatus.APROBADO.value,
            fecha_prestamo=timezone.now(),
            fecha_estimada=fecha_estimada,
        )

        logger.info('Loan marked as approved', loan=self.pk)

        try:
            item.reserve(self.cantidad_prestamo)
        except (InsufficientStock, NotFound):
            self._revert_approval()
            raise

        logger.info(
            'Loan approved', loan=self.pk, item=item.pk, available=item.cantidad_disponible
        )

        self.schedule_notification(LoanEvents.APPROVED)

        return self

    def _revert_approval(self) -> None:
        """Undo an approval whose stock reservation failed.

        Only a loan still in the approved state is reverted; if another
        transition got to it first, that state is kept.
        """
        values = {
            'estado': LoanStatus.PENDIENTE.value,
            'fecha_prestamo': None,
            'fecha_estimada': None,
            'updated_at': timezone.now(),
        }

        updated = Loan.objects.filter(
            pk=self.pk, estado=LoanStatus.APROBADO.value
        ).update(**values)

        if not updated:
            logger.warning(
                'Loan changed state before the approval could be reverted',
                loan=self.pk,
                item=self.item_id,
            )

            if Loan.objects.filter(pk=self.pk).exists():
                self.refresh_from_db()
            return

        for name, value in values.items():
            setattr(self, name, value)

        logger.warning('Loan approval reverted', loan=self.pk, item=self.item_id)

    def reject_loan(self) -> 'Loan':
        """Reject this loan request. No stock was taken, so none is given back."""
        logger.info('Rejecting loan', loan=self.pk)

        if not self.can_reject:
            raise InvalidState(_('The loan is not pending'))

        self._commit_transition(LoanStatus.RECHAZADO.value)

        logger.info('Loan rejected', loan=self.pk)

        self.schedule_notification(LoanEvents.REJECTED)

        return self

    def return_loan(self) -> 'Loan':
        """Mark this loan as returned and put its units back into the stock.

        The stock is capped at the total owned by the item.

        Raises:
            InvalidState: The loan is not approved or deferred
            NotFound: The item no longer exists
        """
        logger.info('Returning loan', loan=self.pk, estado=self.estado)

        if not self.can_return:
            raise InvalidState(_('The loan cannot be returned'))

        item = self.get_item()

        self._commit_transition(LoanStatus.DEVUELTO.value, fecha_retorno=timezone.now())

        logger.info('Loan marked as returned', loan=self.pk)

        item.release(self.cantidad_prestamo)

        self.schedule_notification(LoanEvents.RETURNED)

        return self

    def defer_loan(self, nueva_fecha) -> 'Loan':
        """Move the expected return date of this loan. Stock is not affected.

        Arguments:
            nueva_fecha: The new expected return date (required)
        """
        logger.info('Deferring loan', loan=self.pk)

        if not self.can_defer:
            raise InvalidState(_('The loan cannot be deferred'))

        if not nueva_fecha:
            raise ValidationError(_('The new date is required'))

        self._commit_transition(LoanStatus.APLAZADO.value, fecha_estimada=nueva_fecha)

        logger.info('Loan deferred', loan=self.pk, fecha_estimada=str(nueva_fecha))

        self.schedule_notification(LoanEvents.DEFERRED)

        return self

    @classmethod
    def delete_loan(cls, pk) -> 'Loan':
        """Delete a loan, whatever its state.

        Stock held by an approved or deferred loan is NOT given back;
        callers have to release it explicitly if needed.
        """
        logger.info('Deleting loan', loan=pk)

        loan = cls.objects.filter(pk=pk).first()

        if loan is None:
            raise NotFound(_('Loan not found'))

        loan.delete()

        return loan

    def delete(self, *args, **kwargs):
        """Delete the loan record without touching the item stock."""
        pk = self.pk
        checked_out = self.is_checked_out

        result = super().delete(*args, **kwargs)

        if checked_out:
            logger.warning(
                'Loan deleted while checked out, stock not restored',
                loan=pk,
                item=self.item_id,
                cantidad=self.cantidad_prestamo,
            )
        else:
            logger.info('Loan deleted', loan=pk)

        return result

    # endregion
