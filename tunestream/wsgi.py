"""
WSGI config for the tunestream project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tunestream.settings")

application = get_wsgi_application()
