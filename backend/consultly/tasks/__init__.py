# backend/consultly/tasks/__init__.py
"""
Celery tasks package for Consultly.

Background jobs that must not run inside a request, currently the
Google Calendar busy-slot sync.
"""

from .celery_app import celery_app

__all__ = ["celery_app"]
