"""RBAC feature: role based access control with per-subject permission caching."""

from .entities import (
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
)
from .cache import PermissionCache
from .repositories import (
    MemoryRBACRepository,
    MemoryTransactionManager,
    NullTransactionManager,
    RedisCachedRBACRepository,
)
from .services import RBACService, create_rbac_service

__all__ = [
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
