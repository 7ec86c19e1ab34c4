"""
WSGI config for salon_booking.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "salon_booking.settings")

application = get_wsgi_application()
