"""
ASGI config for the tunestream project.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "tunestream.settings")

application = get_asgi_application()
