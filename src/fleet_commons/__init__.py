"""Fleet-Commons - shared authorization library for the fleet game server panel.

Provides the role based access control engine: abilities, roles and
permissions, the per-subject permission cache, and repository
implementations the engine runs on.

Logging is not configured on import; call ``setup_logging()`` once at
application startup.
"""

from .__version__ import __version__

from .config import (
    RBACSettings,
    get_rbac_settings,
    LoggingConfig,
    setup_logging,
    get_logger,
)

from .core.exceptions import (
    # Base Exception
    FleetCommonsError,
    
    # Authorization Exceptions
    RBACError,
    RBACValidationError,
    InvalidRoleNameError,
    RBACRepositoryError,
    PermissionCacheClosedError,
    
    # Utilities
    get_http_status_code,
    create_error_response,
)

from .features.rbac import (
    Ability,
    AbilityName,
    AssignedRole,
    CachedRBACRepository,
    EntityRef,
    EntityType,
    Permission,
    PermissionMap,
    RBACRepository,
    RestrictedRole,
    Role,
    SERVER_ABILITIES,
    TransactionManager,
    create_ability_for_entity,
    PermissionCache,
    MemoryRBACRepository,
    MemoryTransactionManager,
    NullTransactionManager,
    RedisCachedRBACRepository,
    RBACService,
    create_rbac_service,
)

__all__ = [
    "__version__",
    
    # Configuration
    "RBACSettings",
    "get_rbac_settings",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
    
    # Exceptions
    "FleetCommonsError",
    "RBACError",
    "RBACValidationError",
    "InvalidRoleNameError",
    "RBACRepositoryError",
    "PermissionCacheClosedError",
    "get_http_status_code",
    "create_error_response",
    
    # RBAC
    "Ability",
    "AbilityName",
    "AssignedRole",
    "CachedRBACRepository",
    "EntityRef",
    "EntityType",
    "Permission",
    "PermissionMap",
    "RBACRepository",
    "RestrictedRole",
    "Role",
    "SERVER_ABILITIES",
    "TransactionManager",
    "create_ability_for_entity",
    "PermissionCache",
    "MemoryRBACRepository",
    "MemoryTransactionManager",
    "NullTransactionManager",
    "RedisCachedRBACRepository",
    "RBACService",
    "create_rbac_service",
]
