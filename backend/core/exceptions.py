"""Business rule errors shared by all apps and their mapping to API responses"""
import logging

from django.core.exceptions import ValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('backend.core')


class BusinessRuleError(ValidationError):
    """A request that is well-formed but breaks a business rule"""
    status_code = status.HTTP_400_BAD_REQUEST

    @property
    def detail(self):
        return '; '.join(self.messages)


class OrderLockedError(BusinessRuleError):
    status_code = status.HTTP_409_CONFLICT


def error_response(exc):
    """Build the standard {'error': ...} response for a BusinessRuleError"""
    return Response({'error': exc.detail}, status=exc.status_code)


def api_exception_handler(exc, context):
    """DRF exception handler that also understands BusinessRuleError"""
    if isinstance(exc, BusinessRuleError):
        view = context.get('view')
        logger.warning(f"Business rule rejected request in {getattr(view, '__name__', view)}: {exc.detail}")
        return error_response(exc)
    return exception_handler(exc, context)
