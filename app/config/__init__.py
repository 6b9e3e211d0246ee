"""
Project configuration: settings, URLs, the ASGI application and Celery.

The Celery app is imported here so reconciliation tasks are registered
whenever Django starts, including inside web processes that only queue them.
"""

from config.celery import app as celery_app

__all__ = ("celery_app",)
