"""
PATH: manage.py

Django management entrypoint.

Key safeguard:
- If DJANGO_SETTINGS_MODULE is unset OR incorrectly set to the settings *package*
  ("backend.settings"), we force it to a concrete module ("backend.settings.dev").

Production:
- Production must set DJANGO_SETTINGS_MODULE=backend.settings.prod explicitly.

Listening port:
- `manage.py runserver` with no address binds 0.0.0.0:<PORT> (env PORT, default 5000).
"""

from __future__ import annotations

import os
import sys


def _ensure_settings_module() -> None:
    current = (os.environ.get("DJANGO_SETTINGS_MODULE") or "").strip()

    # The package itself loads nothing; tests would miss INSTALLED_APPS.
    if not current or current == "backend.settings":
        os.environ["DJANGO_SETTINGS_MODULE"] = "backend.settings.dev"


def _with_default_port(argv: list[str]) -> list[str]:
    """
    Append the configured listening address to a bare `runserver`.
    Any explicit address/port argument wins.
    """
    if len(argv) < 2 or argv[1] != "runserver":
        return argv

    positional = [a for a in argv[2:] if not a.startswith("-")]
    if positional:
        return argv

    from django.conf import settings

    port = getattr(settings, "PORT", 5000)
    return [*argv, f"0.0.0.0:{port}"]


def main() -> None:
    _ensure_settings_module()

    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Are you sure it's installed and "
            "available on your PYTHONPATH environment variable? Did you "
            "forget to activate a virtual environment?"
        ) from exc

    execute_from_command_line(_with_default_port(sys.argv))


if __name__ == "__main__":
    main()
