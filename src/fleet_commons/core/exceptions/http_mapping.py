"""HTTP status code mapping for exceptions.

Used by the HTTP layer to turn engine failures into responses.
"""

from typing import Dict, Type

from .base import FleetCommonsError
from .rbac import (
    RBACError,
    RBACValidationError,
    InvalidRoleNameError,
    RBACRepositoryError,
    PermissionCacheClosedError,
)


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 400 Bad Request
    RBACValidationError: 400,
    
    # 422 Unprocessable Entity
    InvalidRoleNameError: 422,
    
    # 500 Internal Server Error
    PermissionCacheClosedError: 500,
    RBACError: 500,
    
    # 503 Service Unavailable
    RBACRepositoryError: 503,
    
    # Default for FleetCommonsError
    FleetCommonsError: 500,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception, walking the class hierarchy.
    
    Args:
        exception: The exception instance
        
    Returns:
        HTTP status code, 500 for unmapped exceptions
    """
    for exception_type in type(exception).__mro__:
        if exception_type in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[exception_type]
    return 500
