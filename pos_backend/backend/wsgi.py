# backend/wsgi.py
"""
WSGI entrypoint for the POS backend.

Falls back to dev settings; production MUST set
DJANGO_SETTINGS_MODULE=backend.settings.prod.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "backend.settings.dev")

application = get_wsgi_application()
