"""Exception hierarchy of fleet-commons and its HTTP status mapping."""

from .base import FleetCommonsError, create_error_response
from .rbac import (
    RBACError,
    RBACValidationError,
    InvalidRoleNameError,
    RBACRepositoryError,
    PermissionCacheClosedError,
)
from .http_mapping import HTTP_STATUS_MAP, get_http_status_code

__all__ = [
    # Base
    "FleetCommonsError",
    "create_error_response",
    "HTTP_STATUS_MAP",
    "get_http_status_code",
    
    # Authorization
    "RBACError",
    "RBACValidationError",
    "InvalidRoleNameError",
    "RBACRepositoryError",
    "PermissionCacheClosedError",
]
