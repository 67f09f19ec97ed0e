"""
WSGI config for the Shalom project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'shalom.settings')

application = get_wsgi_application()
