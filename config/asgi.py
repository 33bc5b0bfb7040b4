"""ASGI entry point for the RentACar API.

Servers should set DJANGO_SETTINGS_MODULE explicitly; development settings
are only the fallback.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
