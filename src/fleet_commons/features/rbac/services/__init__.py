"""RBAC services package.

Authorization checks and grant management for the RBAC feature.
"""

from .rbac_service import RBACService, ability_key, normalize_ability_names, repository_errors
from .factory import create_rbac_service

__all__ = [
    "RBACService",
    "ability_key",
    "normalize_ability_names",
    "repository_errors",
    "create_rbac_service",
]
