import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .errors import NotFoundError, ServiceError

logger = logging.getLogger(__name__)


def _flatten(detail):
    """Turn DRF error details into a single human-readable message"""
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            message = _flatten(value)
            parts.append(message if field == 'non_field_errors' else f"{field}: {message}")
        return '; '.join(parts)
    if isinstance(detail, (list, tuple)):
        return '; '.join(_flatten(item) for item in detail)
    return str(detail)


def api_exception_handler(exc, context):
    """
    Render every error as {statusCode, message, error}.
    Service errors pass through untouched; anything unexpected becomes a 500.
    """
    if isinstance(exc, Http404):
        exc = NotFoundError(str(exc) or 'Not found')

    if isinstance(exc, ServiceError):
        if exc.status_code >= 500:
            logger.error(f"[API] {exc.message}", exc_info=exc.__cause__ or exc)
        return Response({
            'statusCode': exc.status_code,
            'message': exc.message,
            'error': exc.error_name,
        }, status=exc.status_code)

    response = drf_exception_handler(exc, context)
    if response is None:
        logger.error(f"[API] Unhandled error: {exc}", exc_info=exc)
        return Response({
            'statusCode': status.HTTP_500_INTERNAL_SERVER_ERROR,
            'message': 'Internal server error',
            'error': 'Internal Server Error',
        }, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, exceptions.APIException):
        response.data = {
            'statusCode': response.status_code,
            'message': _flatten(exc.detail),
            'error': response.status_text,
        }
    return response
