"""Stock model definitions.

An Item keeps two counters: the units the school owns and the units
currently on the shelf. Units out on loan are the difference. The counters
are only changed through Item.reserve() and Item.release().
"""

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.db.models.functions import Least
from django.urls import reverse
from django.utils.translation import gettext_lazy as _

import structlog

from Inventario.exceptions import InsufficientStock, NotFound
from Inventario.exceptions import ValidationError as InventarioValidationError

logger = structlog.get_logger('inventario')


class Aula(models.Model):
    """A classroom or other location where loaned items are used.

    Attributes:
        nombre: Name of the classroom
        descripcion: Optional description (building, floor, ...)
    """

    class Meta:
        """Model meta options."""

        verbose_name = _('Classroom')
        verbose_name_plural = _('Classrooms')
        ordering = ['nombre']

    nombre = models.CharField(
        max_length=100, unique=True, verbose_name=_('Name'), help_text=_('Classroom name')
    )

    descripcion = models.CharField(
        max_length=250, blank=True, verbose_name=_('Description')
    )

    def __str__(self):
        """Render a string representation of this Aula."""
        return self.nombre

    @staticmethod
    def get_api_url() -> str:
        """Return the API URL associated with the Aula model."""
        return reverse('api-stock-aula-list')


class Item(models.Model):
    """A kind of physical item which can be lent out.

    Attributes:
        nombre: Display name
        descripcion: Optional description
        cantidad_disponible: Units currently available for loan
        cantidad_total_stock: Total units owned
    """

    class Meta:
        """Model meta options."""

        verbose_name = _('Item')
        verbose_name_plural = _('Items')
        ordering = ['nombre']
        constraints = [
            models.CheckConstraint(
                condition=Q(cantidad_disponible__gte=0),
                name='item_disponible_not_negative',
            ),
            models.CheckConstraint(
                condition=Q(cantidad_disponible__lte=F('cantidad_total_stock')),
                name='item_disponible_within_total',
            ),
        ]

    nombre = models.CharField(max_length=120, verbose_name=_('Name'))

    descripcion = models.CharField(
        max_length=250, blank=True, verbose_name=_('Description')
    )

    cantidad_disponible = models.PositiveIntegerField(
        blank=True,
        null=False,
        verbose_name=_('Available Quantity'),
        help_text=_('Units currently available for loan'),
    )

    cantidad_total_stock = models.PositiveIntegerField(
        default=0,
        validators=[MinValueValidator(0)],
        verbose_name=_('Total Stock'),
        help_text=_('Total units owned'),
    )

    def __str__(self):
        """Render a string representation of this Item."""
        return f'{self.nombre} ({self.cantidad_disponible}/{self.cantidad_total_stock})'

    def save(self, *args, **kwargs):
        """A new item starts with its whole stock available."""
        if self.cantidad_disponible is None:
            self.cantidad_disponible = self.cantidad_total_stock

        super().save(*args, **kwargs)

    def clean(self):
        """Check that the available quantity is within the total stock."""
        super().clean()

        if (
            self.cantidad_disponible is not None
            and self.cantidad_disponible > self.cantidad_total_stock
        ):
            raise ValidationError({
                'cantidad_disponible': _('Available quantity cannot exceed total stock')
            })

    @staticmethod
    def get_api_url() -> str:
        """Return the API URL associated with the Item model."""
        return reverse('api-stock-item-list')

    @property
    def cantidad_prestada(self) -> int:
        """Number of units currently out on loan."""
        return self.cantidad_total_stock - self.cantidad_disponible

    def _refresh_counters(self):
        try:
            self.refresh_from_db(fields=['cantidad_disponible', 'cantidad_total_stock'])
        except Item.DoesNotExist:
            raise NotFound(_('Item not found'))

    def reserve(self, cantidad: int) -> None:
        """Take units out of the available stock.

        The decrement is a single conditional UPDATE, so the availability
        can never be persisted below zero. When the guard rejects the
        update, another caller got to the stock first.

        Arguments:
            cantidad: Number of units to reserve (must be positive)

        Raises:
            InsufficientStock: Not enough units are available
            NotFound: The item no longer exists
        """
        if cantidad is None or cantidad <= 0:
            raise InventarioValidationError(_('Quantity must be greater than zero'))

        updated = Item.objects.filter(
            pk=self.pk, cantidad_disponible__gte=cantidad
        ).update(cantidad_disponible=F('cantidad_disponible') - cantidad)

        self._refresh_counters()

        if not updated:
            logger.warning(
                'Stock reservation rejected',
                item=self.pk,
                requested=cantidad,
                available=self.cantidad_disponible,
            )
            raise InsufficientStock(
                _('Insufficient stock: requested {qty}, available {available}').format(
                    qty=cantidad, available=self.cantidad_disponible
                )
            )

        logger.info(
            'Stock reserved',
            item=self.pk,
            quantity=cantidad,
            available=self.cantidad_disponible,
        )

    def release(self, cantidad: int) -> None:
        """Put units back into the available stock.

        The result is capped at the total stock; a release never fails
        because of a counter that drifted out of bounds.

        Arguments:
            cantidad: Number of units to release (must be positive)

        Raises:
            NotFound: The item no longer exists
        """
        if cantidad is None or cantidad <= 0:
            raise InventarioValidationError(_('Quantity must be greater than zero'))

        # Full release when the units fit under the total stock
        capped = not Item.objects.filter(
            pk=self.pk,
            cantidad_disponible__lte=F('cantidad_total_stock') - cantidad,
        ).update(cantidad_disponible=F('cantidad_disponible') + cantidad)

        if capped:
            Item.objects.filter(pk=self.pk).update(
                cantidad_disponible=Least(
                    F('cantidad_disponible') + cantidad, F('cantidad_total_stock')
                )
            )

        self._refresh_counters()

        if capped:
            logger.warning(
                'Stock release capped at total stock',
                item=self.pk,
                quantity=cantidad,
                available=self.cantidad_disponible,
                total=self.cantidad_total_stock,
            )
        else:
            logger.info(
                'Stock released',
                item=self.pk,
                quantity=cantidad,
                available=self.cantidad_disponible,
            )
