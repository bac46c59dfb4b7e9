"""Celery tasks package."""

from app.tasks import maintenance

__all__ = ["maintenance"]
