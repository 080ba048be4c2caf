"""RBAC permission cache."""

from .permission_cache import (
    CLEANUP_INTERVAL_SECONDS,
    CacheEntry,
    CacheKey,
    PermissionCache,
)

__all__ = [
    "CLEANUP_INTERVAL_SECONDS",
    "CacheEntry",
    "CacheKey",
    "PermissionCache",
]
