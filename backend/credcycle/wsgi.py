"""WSGI entry point (``gunicorn credcycle.wsgi:app``)."""

from __future__ import annotations

from credcycle.factory import create_app

app = create_app()
