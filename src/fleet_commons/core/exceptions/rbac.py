"""Authorization-specific exceptions for fleet-commons.

A denied authorization check is never an exception: the ``can*`` methods
answer ``False``. These types describe failures of the engine itself.
"""

from .base import FleetCommonsError


class RBACError(FleetCommonsError):
    """Base exception for RBAC engine errors."""
    pass


class RBACValidationError(RBACError):
    """Raised when RBAC input or domain data violates an invariant."""
    pass


class InvalidRoleNameError(RBACValidationError):
    """Raised when a role name is not present in the role catalog."""
    
    def __init__(self, role_name: str):
        super().__init__(
            f"invalid role name: {role_name}",
            details={"role_name": role_name},
        )
        self.role_name = role_name


class RBACRepositoryError(RBACError):
    """Raised when the RBAC repository or transaction manager fails.
    
    The underlying exception is chained as ``__cause__``.
    """
    pass


class PermissionCacheClosedError(RBACError):
    """Raised when a permission cache is closed more than once."""
    pass
