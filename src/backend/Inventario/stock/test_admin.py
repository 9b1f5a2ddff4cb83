"""Tests for the stock admin interface."""

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase

from stock.models import Item


class ItemAdminTest(TestCase):
    """The available quantity cannot be edited by hand."""

    @classmethod
    def setUpTestData(cls):
        """Create a superuser."""
        super().setUpTestData()

        cls.superuser = get_user_model().objects.create_superuser(
            username='root', email='root@example.org', password='mypassword'
        )

    def setUp(self):
        """Create an item with 2 units on loan."""
        super().setUp()

        self.model_admin = admin.site._registry[Item]

        self.request = RequestFactory().get('/')
        self.request.user = self.superuser

        self.item = Item.objects.create(
            nombre='Portátil', cantidad_disponible=3, cantidad_total_stock=5
        )

    def test_available_readonly(self):
        """The available quantity is not part of the admin form."""
        for obj in [None, self.item]:
            self.assertIn('cantidad_disponible', self.model_admin.get_readonly_fields(self.request, obj))

            form = self.model_admin.get_form(self.request, obj)
            self.assertNotIn('cantidad_disponible', form.base_fields)
            self.assertIn('cantidad_total_stock', form.base_fields)

    def test_edit_keeps_available(self):
        """Saving the item does not write back a stale available quantity."""
        stale = Item.objects.get(pk=self.item.pk)

        # A loan was approved after the admin page was loaded
        self.item.reserve(2)

        form_class = self.model_admin.get_form(self.request, stale)
        form = form_class(
            data={'nombre': 'Portátil HP', 'descripcion': '', 'cantidad_total_stock': 5},
            instance=stale,
        )

        self.assertTrue(form.is_valid(), form.errors)

        self.model_admin.save_model(self.request, form.save(commit=False), form, True)

        self.item.refresh_from_db()
        self.assertEqual(self.item.nombre, 'Portátil HP')
        self.assertEqual(self.item.cantidad_disponible, 1)
