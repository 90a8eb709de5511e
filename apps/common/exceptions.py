"""
Custom exception handlers for consistent API responses
"""
from rest_framework.views import exception_handler
from rest_framework import status
import logging

from apps.tiers.exceptions import TierProgressionError
from .utils import error_response

logger = logging.getLogger(__name__)

ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: ('validation_error', 'Validation error'),
    status.HTTP_401_UNAUTHORIZED: ('authentication_required', 'Authentication required'),
    status.HTTP_403_FORBIDDEN: ('permission_denied', 'Permission denied'),
    status.HTTP_404_NOT_FOUND: ('not_found', 'Resource not found'),
    status.HTTP_405_METHOD_NOT_ALLOWED: ('method_not_allowed', 'Method not allowed'),
}


def custom_exception_handler(exc, context):
    """
    Custom exception handler that returns consistent error responses
    """
    if isinstance(exc, TierProgressionError):
        logger.info(f"Business rule rejected request: {exc.code} - {exc.message}")
        return error_response(
            message=exc.message,
            error=exc.code,
            data=exc.details(),
            status_code=exc.status_code,
        )

    # Call REST framework's default exception handler first
    response = exception_handler(exc, context)

    if response is not None:
        if response.status_code >= 500:
            logger.error(f"API Exception: {exc}", exc_info=True)
            return error_response(
                message='Internal server error',
                error='internal_error',
                status_code=response.status_code,
            )

        logger.warning(f"API Exception: {exc}")
        error_code, message = ERROR_CODES.get(response.status_code, ('error', 'An error occurred'))
        return error_response(
            message=message,
            error=error_code,
            data=response.data,
            status_code=response.status_code,
        )

    return response
