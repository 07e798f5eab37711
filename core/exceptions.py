# manpro\core\exceptions.py
import logging

from rest_framework import exceptions, status
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ValidationFailed(exceptions.ValidationError):
    """Schema or business-rule violation, rendered as 422 with a field map."""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = 'Validation failed'


class AccessDenied(exceptions.PermissionDenied):
    default_detail = 'Access denied'


class NotFound(exceptions.NotFound):
    default_detail = 'Resource not found'


def _field_errors(detail):
    if isinstance(detail, dict):
        return {
            field: [str(msg) for msg in messages] if isinstance(messages, list) else _field_errors(messages)
            for field, messages in detail.items()
        }
    if isinstance(detail, list):
        return {'non_field_errors': [str(msg) for msg in detail]}
    return {'non_field_errors': [str(detail)]}


def _message(detail):
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return next((_message(value) for value in detail.values()), '')
    return str(detail)


def envelope_exception_handler(exc, context):
    """
    Renders every handled API error as the standard error envelope:
    {"status": "error", "message": ..., "errors": {...}}.

    DRF validation errors (serializers and filtersets) become 422. Anything DRF
    does not recognise is returned as None so Django reports it as a 500.
    """
    response = exception_handler(exc, context)
    view = context.get('view')
    view_name = view.__class__.__name__ if view else 'unknown view'

    if response is None:
        logger.error(f"Unhandled error in {view_name}: {exc!r}")
        return None

    if isinstance(exc, exceptions.ValidationError):
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        errors = _field_errors(exc.detail)
        logger.info(f"Validation failed in {view_name}: {errors}")
        response.data = {
            'status': 'error',
            'message': 'Validation failed',
            'errors': errors,
        }
        return response

    if response.status_code == status.HTTP_403_FORBIDDEN:
        logger.warning(f"Access denied in {view_name}: {exc}")

    response.data = {
        'status': 'error',
        'message': _message(getattr(exc, 'detail', str(exc))),
    }
    return response
