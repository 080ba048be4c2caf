"""Memory RBAC repository.

In-memory implementation of the RBAC repository for development, testing
and single-process deployments. Rows are kept the way a relational store
keeps them (roles, assigned roles, abilities, permissions) and joined on
read. Every returned object is a copy.
"""

import copy
import logging
import threading
from dataclasses import replace
from typing import Any, Dict, List, Sequence

from ....core.exceptions import RBACValidationError
from ..entities import (
    Ability,
    AssignedRole,
    EntityType,
    Permission,
    RestrictedRole,
    Role,
)

logger = logging.getLogger(__name__)


class MemoryRBACRepository:
    """Thread-safe in-memory RBAC storage."""
    
    def __init__(self):
        self._roles: Dict[int, Role] = {}
        self._assigned_roles: Dict[int, AssignedRole] = {}
        self._abilities: Dict[int, Ability] = {}
        self._permissions: Dict[int, Permission] = {}
        self._next_ids = {
            "role": 0,
            "assigned_role": 0,
            "ability": 0,
            "permission": 0,
        }
        self._lock = threading.RLock()
    
    def _next_id(self, table: str) -> int:
        self._next_ids[table] += 1
        return self._next_ids[table]
    
    def _reserve_id(self, table: str, row_id: int) -> None:
        # Keep generated ids clear of explicitly saved ones
        if row_id > self._next_ids[table]:
            self._next_ids[table] = row_id
    
    # Reads
    
    async def get_roles(self) -> List[Role]:
        with self._lock:
            return list(self._roles.values())
    
    async def get_permissions(self, entity_id: int, entity_type: EntityType) -> List[Permission]:
        with self._lock:
            permissions = []
            for permission in self._permissions.values():
                if permission.entity_id != entity_id or permission.entity_type != entity_type:
                    continue
                permissions.append(
                    replace(permission, ability=self._abilities.get(permission.ability_id))
                )
            return permissions
    
    async def get_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> List[RestrictedRole]:
        with self._lock:
            roles = []
            for assigned_role in self._assigned_roles.values():
                if assigned_role.entity_id != entity_id or assigned_role.entity_type != entity_type:
                    continue
                role = self._roles.get(assigned_role.role_id)
                if role is None:
                    continue
                roles.append(RestrictedRole(
                    role=role,
                    restricted_to_type=assigned_role.restricted_to_type,
                    restricted_to_id=assigned_role.restricted_to_id,
                ))
            return roles
    
    # Role assignment
    
    async def assign_roles_for_entity(
        self,
        entity_id: int,
        entity_type: EntityType,
        roles: Sequence[RestrictedRole]
    ) -> None:
        with self._lock:
            for restricted_role in roles:
                if restricted_role.id is None:
                    raise RBACValidationError(f"Cannot assign unsaved {restricted_role.role}")
                
                candidate = AssignedRole(
                    id=None,
                    role_id=restricted_role.id,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    restricted_to_id=restricted_role.restricted_to_id,
                    restricted_to_type=restricted_role.restricted_to_type,
                    scope=restricted_role.role.scope,
                )
                if any(candidate.same_binding(existing) for existing in self._assigned_roles.values()):
                    continue
                
                candidate.id = self._next_id("assigned_role")
                self._assigned_roles[candidate.id] = candidate
    
    async def clear_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> None:
        with self._lock:
            self._assigned_roles = {
                row_id: assigned_role
                for row_id, assigned_role in self._assigned_roles.items()
                if not (assigned_role.entity_id == entity_id and assigned_role.entity_type == entity_type)
            }
    
    # Grants
    
    async def allow(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        self._apply_abilities(entity_id, entity_type, abilities, forbidden=False)
    
    async def forbid(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        self._apply_abilities(entity_id, entity_type, abilities, forbidden=True)
    
    async def revoke(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        if not abilities:
            return
        
        with self._lock:
            ability_ids = self._find_ability_ids(abilities)
            if not ability_ids:
                return
            
            self._permissions = {
                row_id: permission
                for row_id, permission in self._permissions.items()
                if not (
                    permission.entity_id == entity_id
                    and permission.entity_type == entity_type
                    and permission.ability_id in ability_ids
                )
            }
    
    def _apply_abilities(
        self,
        entity_id: int,
        entity_type: EntityType,
        abilities: Sequence[Ability],
        forbidden: bool
    ) -> None:
        if not abilities:
            return
        
        with self._lock:
            for ability in abilities:
                ability_id = self._save_or_get_ability(ability)
                permission_id = self._next_id("permission")
                self._permissions[permission_id] = Permission(
                    id=permission_id,
                    ability_id=ability_id,
                    entity_id=entity_id,
                    entity_type=entity_type,
                    forbidden=forbidden,
                )
    
    def _save_or_get_ability(self, ability: Ability) -> int:
        for existing in self._abilities.values():
            if existing.same_key(ability):
                return existing.id
        
        ability_id = self._next_id("ability")
        self._abilities[ability_id] = replace(ability, id=ability_id)
        return ability_id
    
    def _find_ability_ids(self, abilities: Sequence[Ability]) -> List[int]:
        ability_ids = []
        for ability in abilities:
            for existing in self._abilities.values():
                if existing.same_key(ability):
                    ability_ids.append(existing.id)
                    break
        return ability_ids
    
    # Seeding helpers
    
    async def save_role(self, role: Role) -> Role:
        """Insert or replace a role, assigning an id when it has none."""
        with self._lock:
            if not role.id:
                role = replace(role, id=self._next_id("role"))
            else:
                self._reserve_id("role", role.id)
            self._roles[role.id] = role
            return role
    
    async def save_assigned_role(self, assigned_role: AssignedRole) -> AssignedRole:
        with self._lock:
            assigned_role = copy.copy(assigned_role)
            if not assigned_role.id:
                assigned_role.id = self._next_id("assigned_role")
            else:
                self._reserve_id("assigned_role", assigned_role.id)
            self._assigned_roles[assigned_role.id] = assigned_role
            return copy.copy(assigned_role)
    
    async def save_ability(self, ability: Ability) -> Ability:
        with self._lock:
            if not ability.id:
                ability = replace(ability, id=self._next_id("ability"))
            else:
                self._reserve_id("ability", ability.id)
            self._abilities[ability.id] = ability
            return ability
    
    async def save_permission(self, permission: Permission) -> Permission:
        """Insert or replace a permission row. The joined ability is not stored."""
        with self._lock:
            permission = replace(permission, ability=None)
            if not permission.id:
                permission.id = self._next_id("permission")
            else:
                self._reserve_id("permission", permission.id)
            self._permissions[permission.id] = permission
            return replace(permission)
    
    async def assign_ability_to_user(self, user_id: int, ability_id: int) -> Permission:
        """Grant an existing ability to a user."""
        return await self.save_permission(Permission(
            id=None,
            ability_id=ability_id,
            entity_id=user_id,
            entity_type=EntityType.USER,
            forbidden=False,
        ))
    
    async def delete_role(self, role_id: int) -> None:
        with self._lock:
            self._roles.pop(role_id, None)
    
    async def delete_assigned_role(self, assigned_role_id: int) -> None:
        with self._lock:
            self._assigned_roles.pop(assigned_role_id, None)
    
    # Transaction support
    
    def snapshot(self) -> Dict[str, Any]:
        """Capture the full state for a later ``restore``."""
        with self._lock:
            return {
                "roles": dict(self._roles),
                "assigned_roles": {k: copy.copy(v) for k, v in self._assigned_roles.items()},
                "abilities": dict(self._abilities),
                "permissions": {k: replace(v) for k, v in self._permissions.items()},
                "next_ids": dict(self._next_ids),
            }
    
    def restore(self, state: Dict[str, Any]) -> None:
        with self._lock:
            self._roles = dict(state["roles"])
            self._assigned_roles = dict(state["assigned_roles"])
            self._abilities = dict(state["abilities"])
            self._permissions = dict(state["permissions"])
            self._next_ids = dict(state["next_ids"])
        logger.debug("Memory RBAC repository state restored")
