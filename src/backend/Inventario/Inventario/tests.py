"""Tests for the shared Inventario helpers."""

from unittest import mock

from django.core.exceptions import ValidationError as DjangoValidationError
from django.test import TestCase

from rest_framework.exceptions import NotAuthenticated

from Inventario.exceptions import (
    Forbidden,
    InsufficientStock,
    InvalidState,
    NotFound,
    ValidationError,
    exception_handler,
)
from Inventario.tasks import offload_task


class ExceptionHandlerTest(TestCase):
    """Tests for the custom DRF exception handler."""

    def test_domain_errors(self):
        """Each domain error maps onto a status code and error code."""
        cases = [
            (NotFound('Loan not found'), 404, 'not_found'),
            (Forbidden(), 403, 'forbidden'),
            (InvalidState('The loan is not pending'), 400, 'invalid_state'),
            (ValidationError('The new date is required'), 400, 'invalid'),
            (InsufficientStock(), 400, 'insufficient_stock'),
        ]

        for exc, status_code, code in cases:
            response = exception_handler(exc, {})

            self.assertEqual(response.status_code, status_code)
            self.assertEqual(response.data['code'], code)
            self.assertEqual(response.data['detail'], str(exc.detail))

    def test_django_validation_error(self):
        """Model validation errors become a 400 response."""
        response = exception_handler(
            DjangoValidationError({'fecha_estimada': 'Bad date'}), {}
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn('fecha_estimada', response.data)

    def test_drf_errors(self):
        """Other API errors keep their default handling."""
        response = exception_handler(NotAuthenticated(), {})
        self.assertIn(response.status_code, [401, 403])

    def test_unexpected_error(self):
        """Unexpected errors are left to the server error handling."""
        self.assertIsNone(exception_handler(RuntimeError('boom'), {}))


class OffloadTaskTest(TestCase):
    """Tests for offload_task."""

    @mock.patch('django_q.tasks.async_task', return_value='abc123')
    def test_offload(self, async_task):
        """Tasks are handed to the worker."""
        self.assertTrue(offload_task('loan.tasks.notify_loan_event', 1, 'loan.created'))

        async_task.assert_called_once_with('loan.tasks.notify_loan_event', 1, 'loan.created')

    @mock.patch('django_q.tasks.async_task', side_effect=ConnectionError('broker down'))
    def test_offload_failure(self, async_task):
        """A failure to enqueue never reaches the caller."""
        self.assertFalse(offload_task('loan.tasks.notify_loan_event', 1, 'loan.created'))
