"""RBAC entities package.

Domain entities and protocols for abilities, permissions and roles.
"""

from .entity import EntityType, EntityRef
from .ability import Ability, AbilityName, SERVER_ABILITIES, create_ability_for_entity
from .permission import Permission, PermissionMap
from .role import Role, RestrictedRole, AssignedRole
from .protocols import CachedRBACRepository, RBACRepository, TransactionManager

__all__ = [
    # Domain entities
    "EntityType",
    "EntityRef",
    "Ability",
    "AbilityName",
    "SERVER_ABILITIES",
    "create_ability_for_entity",
    "Permission",
    "PermissionMap",
    "Role",
    "RestrictedRole",
    "AssignedRole",
    
    # Protocols
    "RBACRepository",
    "CachedRBACRepository",
    "TransactionManager",
]
