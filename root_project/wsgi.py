"""WSGI entry point for the Courtly project."""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'root_project.settings')

application = get_wsgi_application()
