"""Unit tests for the stock counters of the Item model."""

from unittest import mock

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from Inventario.exceptions import InsufficientStock, NotFound, ValidationError
from stock.models import Item


class ItemTest(TestCase):
    """Tests for the Item model."""

    def test_new_item_fully_available(self):
        """Without an explicit availability, the whole stock is available."""
        item = Item.objects.create(nombre='Proyector', cantidad_total_stock=4)
        self.assertEqual(item.cantidad_disponible, 4)
        self.assertEqual(item.cantidad_prestada, 0)

    def test_clean_rejects_availability_above_total(self):
        """clean() reports availability above the total stock."""
        item = Item(nombre='Cable', cantidad_disponible=6, cantidad_total_stock=5)

        with self.assertRaises(DjangoValidationError):
            item.clean()

    def test_database_constraint(self):
        """The database refuses availability above the total stock."""
        with self.assertRaises(IntegrityError), transaction.atomic():
            Item.objects.create(nombre='Cable', cantidad_disponible=6, cantidad_total_stock=5)


class ItemLedgerTest(TestCase):
    """Tests for Item.reserve() and Item.release()."""

    def setUp(self):
        """Create an item with some units already on loan."""
        self.item = Item.objects.create(
            nombre='Portátil', cantidad_disponible=3, cantidad_total_stock=5
        )

    def test_reserve(self):
        """Reserving units decrements the available stock."""
        self.item.reserve(2)
        self.assertEqual(self.item.cantidad_disponible, 1)

        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 1)
        self.assertEqual(self.item.cantidad_prestada, 4)

    def test_reserve_all(self):
        """All available units can be reserved."""
        self.item.reserve(3)
        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 0)

    def test_reserve_too_many(self):
        """A reservation which would go below zero changes nothing."""
        with self.assertRaises(InsufficientStock):
            self.item.reserve(4)

        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 3)

    def test_reserve_with_stale_instance(self):
        """The stored counter decides, not the in-memory copy."""
        stale = Item.objects.get(pk=self.item.pk)

        self.item.reserve(3)

        # The stale copy still believes 3 units are available
        self.assertEqual(stale.cantidad_disponible, 3)

        with self.assertRaises(InsufficientStock):
            stale.reserve(1)

        # ...and has been refreshed by the failed attempt
        self.assertEqual(stale.cantidad_disponible, 0)

    def test_reserve_invalid_quantity(self):
        """Quantities must be positive."""
        for qty in [0, -1, None]:
            with self.assertRaises(ValidationError):
                self.item.reserve(qty)

        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 3)

    def test_reserve_deleted_item(self):
        """Reserving a deleted item reports it as missing."""
        Item.objects.filter(pk=self.item.pk).delete()

        with self.assertRaises(NotFound):
            self.item.reserve(1)

    def test_release(self):
        """Releasing units increments the available stock."""
        self.item.release(2)
        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 5)

    def test_release_capped_at_total(self):
        """A release never lifts availability above the total stock."""
        self.item.release(4)
        self.assertEqual(self.item.cantidad_disponible, 5)

        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 5)

        # Releasing into a full item is not an error either
        self.item.release(1)
        self.assertEqual(self.item.cantidad_disponible, 5)

    def test_release_logs_from_database(self):
        """Capped releases are detected from the stored counter, not a stale copy."""
        stale = Item.objects.get(pk=self.item.pk)

        # Another release filled the item after this copy was read
        Item.objects.filter(pk=self.item.pk).update(cantidad_disponible=5)

        with mock.patch('stock.models.logger') as logger:
            stale.release(1)

        logger.warning.assert_called_once()
        logger.info.assert_not_called()
        self.assertEqual(stale.cantidad_disponible, 5)

        # Another reservation emptied the item after this copy was read
        Item.objects.filter(pk=self.item.pk).update(cantidad_disponible=2)
        stale = Item.objects.get(pk=self.item.pk)
        stale.cantidad_disponible = 5

        with mock.patch('stock.models.logger') as logger:
            stale.release(1)

        logger.info.assert_called_once()
        logger.warning.assert_not_called()

        self.item.refresh_from_db()
        self.assertEqual(self.item.cantidad_disponible, 3)

    def test_release_invalid_quantity(self):
        """Quantities must be positive."""
        with self.assertRaises(ValidationError):
            self.item.release(0)

    def test_bounds_hold(self):
        """Any sequence of reserve / release keeps the counters in bounds."""
        operations = [
            ('reserve', 2), ('release', 1), ('reserve', 3), ('reserve', 1),
            ('release', 10), ('reserve', 5), ('reserve', 1), ('release', 2),
        ]

        for op, qty in operations:
            try:
                getattr(self.item, op)(qty)
            except InsufficientStock:
                pass

            self.item.refresh_from_db()
            self.assertGreaterEqual(self.item.cantidad_disponible, 0)
            self.assertLessEqual(self.item.cantidad_disponible, self.item.cantidad_total_stock)
