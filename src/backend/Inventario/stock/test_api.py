"""API tests for the Stock module."""

from django.urls import reverse

from Inventario.unit_test import InventarioAPITestCase
from stock.models import Aula, Item


class ItemAPITest(InventarioAPITestCase):
    """Tests for the Item endpoints."""

    def setUp(self):
        """Create an item."""
        super().setUp()

        self.item = Item.objects.create(
            nombre='Parlante', cantidad_disponible=1, cantidad_total_stock=3
        )
        self.list_url = Item.get_api_url()
        self.detail_url = reverse('api-stock-item-detail', kwargs={'pk': self.item.pk})

    def test_list(self):
        """Any user can see the items and their counters."""
        response = self.get(self.list_url)

        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['cantidad_disponible'], 1)
        self.assertEqual(response.data[0]['cantidad_prestada'], 2)

    def test_create(self):
        """Only admins can add items."""
        data = {'nombre': 'Micrófono', 'cantidad_total_stock': 4}

        self.post(self.list_url, data, expected_code=403)

        self.switch_user(self.admin)
        response = self.post(self.list_url, data)

        self.assertEqual(response.data['cantidad_disponible'], 4)
        self.assertEqual(response.data['cantidad_total_stock'], 4)

    def test_create_invalid(self):
        """Availability cannot exceed the total stock."""
        self.switch_user(self.admin)

        response = self.post(
            self.list_url,
            {'nombre': 'Micrófono', 'cantidad_disponible': 5, 'cantidad_total_stock': 4},
            expected_code=400,
        )
        self.assertIn('cantidad_disponible', response.data)

        self.post(
            self.list_url,
            {'nombre': 'Micrófono', 'cantidad_total_stock': -1},
            expected_code=400,
        )

    def test_update(self):
        """Names can be edited, counters cannot."""
        self.patch(self.detail_url, {'nombre': 'Otro'}, expected_code=403)

        self.switch_user(self.admin)
        self.patch(self.detail_url, {'nombre': 'Parlante grande'})
        self.patch(self.detail_url, {'cantidad_disponible': 3}, expected_code=400)

        self.item.refresh_from_db()
        self.assertEqual(self.item.nombre, 'Parlante grande')
        self.assertEqual(self.item.cantidad_disponible, 1)


class AulaAPITest(InventarioAPITestCase):
    """Tests for the Aula endpoints."""

    def test_aulas(self):
        """Any user can list classrooms; only admins can add them."""
        url = Aula.get_api_url()

        Aula.objects.create(nombre='Biblioteca')

        response = self.get(url)
        self.assertEqual([row['nombre'] for row in response.data], ['Biblioteca'])

        self.post(url, {'nombre': 'Gimnasio'}, expected_code=403)

        self.switch_user(self.admin)
        self.post(url, {'nombre': 'Gimnasio'})

        # Names are unique
        self.post(url, {'nombre': 'Gimnasio'}, expected_code=400)
