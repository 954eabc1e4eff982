"""
Error taxonomy for the questionnaire services.

Services raise these; the DRF exception handler below renders them as
``{"detail": ..., "code": ..., **extra}`` with the matching status code.
"""
import logging

from django.db import DatabaseError
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'error'

    def __init__(self, detail=None, code=None, **extra):
        super().__init__(detail=detail, code=code)
        self.code = code or self.default_code
        self.extra = extra

    def get_payload(self):
        payload = {'detail': str(self.detail), 'code': self.code}
        payload.update(self.extra)
        return payload


class InvalidInputError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class PublishRejectedError(InvalidInputError):
    """Raised with every unmet publish rule listed under ``errors``."""
    default_detail = 'Questionnaire cannot be published.'
    default_code = 'publish_rejected'

    def __init__(self, issues):
        super().__init__(errors=[issue.as_dict() for issue in issues])
        self.issues = list(issues)


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class AccessDeniedError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'access_denied'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Request conflicts with the current state.'
    default_code = 'conflict'


class StorageError(ServiceError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'A storage error occurred. No changes were saved.'
    default_code = 'storage_error'


def questionnaire_exception_handler(exc, context):
    if isinstance(exc, DatabaseError):
        view = context.get('view')
        logger.exception(f"STORAGE_ERROR | View: {view.__class__.__name__ if view else '-'} | {exc}")
        exc = StorageError()

    if isinstance(exc, ServiceError):
        return Response(exc.get_payload(), status=exc.status_code)

    return exception_handler(exc, context)
