"""
Health check views for the loyalty server application.
"""
from django.http import JsonResponse
from django.utils import timezone
from django.views import View
from django.db import connection, DatabaseError
import time
import logging

from apps.tiers.catalog import get_catalog

logger = logging.getLogger(__name__)


class BasicHealthCheckView(View):
    """
    Basic health check endpoint for monitoring tools.
    No authentication required. Includes database connectivity and
    the loaded tier catalog.
    """

    def get(self, request):
        start_time = time.time()

        catalog = get_catalog()
        health_data = {
            'status': 'healthy',
            'timestamp': timezone.now().isoformat(),
            'catalog': {
                'tiers': len(catalog.tiers),
                'badges': len(catalog.badges),
                'special_tiers': len(catalog.special_tiers),
            },
        }

        db_status, db_error = self._check_database_health()
        health_data['database'] = db_status

        if db_status['status'] != 'healthy':
            health_data['status'] = 'unhealthy'
            logger.error(f"Database health check failed: {db_error}")

        response_time_ms = (time.time() - start_time) * 1000
        health_data['response_time_ms'] = round(response_time_ms, 2)

        healthy = health_data['status'] == 'healthy'
        response = {
            'success': healthy,
            'message': 'Service healthy' if healthy else 'Service unhealthy',
            'data': health_data,
        }
        if not healthy:
            response['error'] = 'unhealthy'
        return JsonResponse(response, status=200 if healthy else 503)

    def _check_database_health(self):
        """
        Verify database connectivity using a simple SELECT query.

        Returns:
            tuple: (db_status_dict, error_message)
        """
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
                result = cursor.fetchone()

            if result and result[0] == 1:
                return {
                    'status': 'healthy',
                    'message': 'Database connection successful'
                }, None
            return {
                'status': 'unhealthy',
                'message': 'Database query returned unexpected result'
            }, 'Unexpected query result'

        except DatabaseError as e:
            return {
                'status': 'unhealthy',
                'message': 'Database connection failed',
            }, str(e)
