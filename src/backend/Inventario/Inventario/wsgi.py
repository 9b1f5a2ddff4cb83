"""WSGI config for the Inventario project."""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'Inventario.settings')

application = get_wsgi_application()
