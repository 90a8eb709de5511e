"""
Middleware for request logging and secure error handling
"""

import logging
import time
from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(MiddlewareMixin):
    """
    Log API requests with their status code and duration
    """

    def process_request(self, request):
        request._start_time = time.time()

    def process_response(self, request, response):
        if request.path.startswith('/api/') and hasattr(request, '_start_time'):
            duration_ms = (time.time() - request._start_time) * 1000
            user_id = None
            if hasattr(request, 'user') and request.user.is_authenticated:
                user_id = request.user.id
            logger.info(
                f"{request.method} {request.path} -> {response.status_code} "
                f"({duration_ms:.1f}ms, user={user_id})"
            )
        return response


class ErrorHandlingMiddleware(MiddlewareMixin):
    """
    Secure error handling middleware that prevents information leakage
    """

    def process_exception(self, request, exception):
        """Handle exceptions securely"""
        # Log the actual exception for debugging
        logger.error(f"Exception in {request.path}: {str(exception)}", exc_info=True)

        # Return generic error envelope without exposing internal details
        if request.path.startswith('/api/'):
            error_response = {
                'success': False,
                'message': 'Internal server error, please retry later',
                'error': 'internal_error',
            }
            return JsonResponse(error_response, status=500)

        return None  # Let Django handle non-API errors normally
