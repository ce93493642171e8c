"""
Domain errors raised by the catalog and order services, and the DRF
exception handler that turns them into JSON responses.
"""
import logging

from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InventoryError(Exception):
    """Base class for errors that are safe to show to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'internal_error'
    default_message = 'An unexpected error occurred'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {
            'success': False,
            'error': self.code,
            'message': self.message,
        }


class InvalidRequest(InventoryError):
    """Missing or malformed input. The caller can fix and retry."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = 'validation_error'
    default_message = 'Invalid request'


class NotFound(InventoryError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'not_found'
    default_message = 'Not found'


class InsufficientStock(InventoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'insufficient_stock'

    def __init__(self, product_name, available, requested):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. "
            f"Available: {available}, Requested: {requested}"
        )

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'product_name': self.product_name,
            'available': self.available,
            'requested': self.requested,
        })
        return data


class StockConflict(InventoryError):
    """Stock moved between the caller's read and its absolute stock edit."""

    status_code = status.HTTP_409_CONFLICT
    code = 'stock_conflict'

    def __init__(self, product_name, expected, current):
        self.product_name = product_name
        self.expected = expected
        self.current = current
        super().__init__(
            f"Stock for {product_name} has changed. "
            f"Expected: {expected}, Current: {current}"
        )

    def to_dict(self):
        data = super().to_dict()
        data.update({
            'product_name': self.product_name,
            'expected': self.expected,
            'current': self.current,
        })
        return data


# DRF exception codes mapped onto the codes used by InventoryError
DRF_ERROR_CODES = {
    'invalid': 'validation_error',
    'parse_error': 'validation_error',
    'not_found': 'not_found',
}


def _envelope(exc, response):
    """Rewrap a response from DRF's handler in the ``success/error/message`` shape."""
    if isinstance(exc, Http404):
        exc = exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = exceptions.PermissionDenied()

    code = getattr(exc, 'default_code', 'error')
    if isinstance(exc, exceptions.ValidationError):
        message = 'Invalid request data'
    else:
        message = str(getattr(exc, 'detail', exc))

    data = {
        'success': False,
        'error': DRF_ERROR_CODES.get(code, code),
        'message': message,
    }
    if isinstance(exc, exceptions.ValidationError):
        data['details'] = response.data
    response.data = data
    return response


def api_exception_handler(exc, context):
    """
    REST_FRAMEWORK['EXCEPTION_HANDLER'].

    Domain errors keep their own status and message, DRF's exceptions keep
    DRF's status but share the same envelope (field errors under
    ``details``), and anything else is logged with its traceback and
    reported as a generic 500.
    """
    if isinstance(exc, InventoryError):
        return Response(exc.to_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return _envelope(exc, response)

    view = context.get('view')
    logger.exception(
        f"[API ERROR] Unhandled {exc.__class__.__name__} in "
        f"{view.__class__.__name__ if view else 'unknown view'}: {exc}"
    )
    return Response(
        InventoryError().to_dict(),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
