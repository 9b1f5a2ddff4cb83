"""Custom exception handling for the Inventario API.

Domain code raises the exceptions defined here; the DRF exception handler
translates them into JSON error responses with a matching status code.
"""

import sys
import traceback

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.translation import gettext_lazy as _

import rest_framework.views as drfviews
import structlog
from rest_framework import serializers
from rest_framework.response import Response

logger = structlog.get_logger('inventario')


class InventarioError(Exception):
    """Base class for errors raised by the inventory and loan layers."""

    status_code = 400
    default_code = 'error'
    default_detail = _('An error occurred')

    def __init__(self, detail=None, code=None):
        """Store the message and machine-readable code."""
        self.detail = detail if detail is not None else self.default_detail
        self.code = code or self.default_code
        super().__init__(str(self.detail))


class NotFound(InventarioError):
    """A loan or item could not be found."""

    status_code = 404
    default_code = 'not_found'
    default_detail = _('Not found')


class InvalidState(InventarioError):
    """A transition was attempted from a state which does not allow it."""

    default_code = 'invalid_state'
    default_detail = _('Operation not allowed in the current state')


class ValidationError(InventarioError):
    """A required value is missing or malformed."""

    default_code = 'invalid'
    default_detail = _('Invalid data')


class InsufficientStock(InventarioError):
    """The requested quantity exceeds the available stock."""

    default_code = 'insufficient_stock'
    default_detail = _('Insufficient stock')


class Forbidden(InventarioError):
    """The caller is neither the owner of the record nor an admin."""

    status_code = 403
    default_code = 'forbidden'
    default_detail = _('Not authorized')


def log_error(path, error_name=None, error_info=None, error_data=None):
    """Log an unexpected error together with its traceback.

    Arguments:
        path: The 'path' (module, task name or URL) where the error occurred
        error_name: Name of the error (defaults to the active exception type)
        error_info: Error message (defaults to the active exception value)
        error_data: Traceback text (defaults to the active traceback)
    """
    kind, info, data = sys.exc_info()

    if kind is None and error_name is None:
        return

    kind = error_name or kind.__name__

    if error_info:
        info = error_info

    if error_data:
        data = error_data
    elif data is not None:
        data = ''.join(traceback.format_tb(data))

    logger.error('unexpected_error', path=path, kind=kind, info=str(info), data=data)


def exception_handler(exc, context):
    """Custom exception handler for DRF framework.

    Ref: https://www.django-rest-framework.org/api-guide/exceptions/#custom-exception-handling
    Catches domain errors and Django validation errors and returns a JSON
    response instead of a server error.
    """
    if isinstance(exc, InventarioError):
        return Response(
            {'detail': str(exc.detail), 'code': exc.code}, status=exc.status_code
        )

    if isinstance(exc, DjangoValidationError):
        exc = serializers.ValidationError(
            exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        )

    response = drfviews.exception_handler(exc, context)

    if response is None:
        # Not handled by DRF, so it is an unexpected server error
        view = context.get('view')
        log_error(view.__class__.__name__ if view else 'api')

    return response
