# backend/settings/__init__.py
"""
Settings package. Nothing is loaded from here; pick a module with
DJANGO_SETTINGS_MODULE:
- backend.settings.dev   local development and tests
- backend.settings.prod  production (fails closed on missing secrets)
"""
