"""
Error taxonomy shared by every app.
Client-facing kinds surface their message verbatim; InternalError wraps
collaborator failures (storage, database, image library).
"""

from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    """Base class for errors raised by the service layer"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error'
    default_code = 'error'
    error_name = 'Internal Server Error'

    def __init__(self, message=None):
        super().__init__(detail=message or self.default_detail)
        self.message = str(self.detail)

    def __str__(self):
        return self.message


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input'
    default_code = 'validation_error'
    error_name = 'Bad Request'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found'
    default_code = 'not_found'
    error_name = 'Not Found'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict'
    default_code = 'conflict'
    error_name = 'Conflict'


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Forbidden'
    default_code = 'forbidden'
    error_name = 'Forbidden'


class InternalError(ServiceError):
    pass


CLIENT_ERRORS = (ValidationError, NotFoundError, ConflictError, ForbiddenError)


def is_client_error(exc):
    return isinstance(exc, CLIENT_ERRORS)
