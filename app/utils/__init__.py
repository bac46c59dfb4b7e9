"""Utility helpers package."""

from app.utils.cache import CacheBackend, cache_backend, invalidate_user_views

__all__ = ["CacheBackend", "cache_backend", "invalidate_user_views"]
