"""
WSGI config for loyalty_server project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'loyalty_server.settings.development')

application = get_wsgi_application()
