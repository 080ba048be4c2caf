"""
Redis read-through cache in front of an RBAC repository.

Role catalog, role assignments and permission rows are cached as JSON with a
TTL. Writes go to the wrapped repository and then drop the keys they affect.
Redis being unavailable never fails a call: reads fall back to the wrapped
repository and the failure is logged.
"""
import json
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

import redis.asyncio as redis

from ..entities import (
    Ability,
    EntityType,
    Permission,
    RBACRepository,
    RestrictedRole,
    Role,
)

logger = logging.getLogger(__name__)


def _dump_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _load_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value is not None else None


def _enum_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


class RedisCachedRBACRepository:
    """RBAC repository decorator caching reads in Redis."""
    
    def __init__(
        self,
        inner: RBACRepository,
        redis_client: redis.Redis,
        ttl_seconds: int = 86400,
        key_prefix: str = "fleet:rbac",
        owns_client: bool = False
    ):
        """Initialize Redis cached repository.
        
        Args:
            inner: Repository holding the data
            redis_client: Async Redis client
            ttl_seconds: Lifetime of cached reads
            key_prefix: Prefix of every cache key
            owns_client: Close the client when the repository is closed
        """
        self._inner = inner
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix
        self._owns_client = owns_client
    
    # Keys
    
    def _roles_key(self) -> str:
        return f"{self._key_prefix}:roles:all"
    
    def _entity_roles_key(self, entity_id: int, entity_type: EntityType) -> str:
        return f"{self._key_prefix}:roles:{_enum_value(entity_type)}_{entity_id}"
    
    def _permissions_key(self, entity_id: int, entity_type: EntityType) -> str:
        return f"{self._key_prefix}:permissions:{_enum_value(entity_type)}_{entity_id}"
    
    # Redis access
    
    async def _get_cached(self, key: str) -> Optional[List[Dict[str, Any]]]:
        try:
            result = await self._redis.get(key)
            if result is None:
                return None
            if isinstance(result, bytes):
                result = result.decode()
            return json.loads(result)
        except Exception as e:
            logger.warning(f"Failed to get {key} from cache: {e}")
            return None
    
    async def _set_cached(self, key: str, data: List[Dict[str, Any]]) -> None:
        try:
            await self._redis.setex(key, self._ttl_seconds, json.dumps(data))
        except Exception as e:
            logger.warning(f"Failed to cache {key}: {e}")
    
    async def _invalidate(self, *keys: str) -> None:
        try:
            await self._redis.delete(*keys)
        except Exception as e:
            logger.warning(f"Failed to invalidate {', '.join(keys)}: {e}")
    
    # Reads
    
    async def get_roles(self) -> List[Role]:
        key = self._roles_key()
        cached = await self._get_cached(key)
        if cached is not None:
            return [self._deserialize_role(data) for data in cached]
        
        roles = await self._inner.get_roles()
        await self._set_cached(key, [self._serialize_role(role) for role in roles])
        return roles
    
    async def get_permissions(self, entity_id: int, entity_type: EntityType) -> List[Permission]:
        key = self._permissions_key(entity_id, entity_type)
        cached = await self._get_cached(key)
        if cached is not None:
            return [self._deserialize_permission(data) for data in cached]
        
        permissions = await self._inner.get_permissions(entity_id, entity_type)
        await self._set_cached(key, [self._serialize_permission(p) for p in permissions])
        return permissions
    
    async def get_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> List[RestrictedRole]:
        key = self._entity_roles_key(entity_id, entity_type)
        cached = await self._get_cached(key)
        if cached is not None:
            return [self._deserialize_restricted_role(data) for data in cached]
        
        roles = await self._inner.get_roles_for_entity(entity_id, entity_type)
        await self._set_cached(key, [self._serialize_restricted_role(role) for role in roles])
        return roles
    
    # Writes
    
    async def assign_roles_for_entity(
        self,
        entity_id: int,
        entity_type: EntityType,
        roles: Sequence[RestrictedRole]
    ) -> None:
        await self._inner.assign_roles_for_entity(entity_id, entity_type, roles)
        await self._invalidate(self._entity_roles_key(entity_id, entity_type))
    
    async def clear_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> None:
        await self._inner.clear_roles_for_entity(entity_id, entity_type)
        await self._invalidate(self._entity_roles_key(entity_id, entity_type))
    
    async def allow(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        await self._inner.allow(entity_id, entity_type, abilities)
        await self._invalidate(self._permissions_key(entity_id, entity_type))
    
    async def forbid(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        await self._inner.forbid(entity_id, entity_type, abilities)
        await self._invalidate(self._permissions_key(entity_id, entity_type))
    
    async def revoke(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        await self._inner.revoke(entity_id, entity_type, abilities)
        await self._invalidate(self._permissions_key(entity_id, entity_type))
    
    async def invalidate_role_catalog(self) -> None:
        """Drop the cached role catalog after roles change outside this repository."""
        await self._invalidate(self._roles_key())
    
    async def invalidate_entity(self, entity_id: int, entity_type: EntityType) -> None:
        """Drop the cached roles and permissions of a subject."""
        await self._invalidate(
            self._entity_roles_key(entity_id, entity_type),
            self._permissions_key(entity_id, entity_type),
        )
    
    async def close(self) -> None:
        """Close the Redis client if this repository created it."""
        if self._owns_client:
            await self._redis.aclose()
    
    # Serialization
    
    def _serialize_role(self, role: Role) -> Dict[str, Any]:
        """Serialize role to JSON-compatible format."""
        return {
            "id": role.id,
            "name": role.name,
            "title": role.title,
            "level": role.level,
            "scope": role.scope,
            "created_at": _dump_datetime(role.created_at),
            "updated_at": _dump_datetime(role.updated_at),
        }
    
    def _deserialize_role(self, data: Dict[str, Any]) -> Role:
        return Role(
            id=data["id"],
            name=data["name"],
            title=data.get("title"),
            level=data.get("level"),
            scope=data.get("scope"),
            created_at=_load_datetime(data.get("created_at")),
            updated_at=_load_datetime(data.get("updated_at")),
        )
    
    def _serialize_restricted_role(self, role: RestrictedRole) -> Dict[str, Any]:
        data = self._serialize_role(role.role)
        data["restricted_to_type"] = _enum_value(role.restricted_to_type)
        data["restricted_to_id"] = role.restricted_to_id
        return data
    
    def _deserialize_restricted_role(self, data: Dict[str, Any]) -> RestrictedRole:
        return RestrictedRole(
            role=self._deserialize_role(data),
            restricted_to_type=data.get("restricted_to_type"),
            restricted_to_id=data.get("restricted_to_id"),
        )
    
    def _serialize_ability(self, ability: Ability) -> Dict[str, Any]:
        """Serialize ability to JSON-compatible format."""
        return {
            "id": ability.id,
            "name": _enum_value(ability.name),
            "title": ability.title,
            "entity_id": ability.entity_id,
            "entity_type": _enum_value(ability.entity_type),
            "only_owned": ability.only_owned,
            "options": ability.options,
            "scope": ability.scope,
            "created_at": _dump_datetime(ability.created_at),
            "updated_at": _dump_datetime(ability.updated_at),
        }
    
    def _deserialize_ability(self, data: Dict[str, Any]) -> Ability:
        return Ability(
            id=data["id"],
            name=data["name"],
            title=data.get("title"),
            entity_id=data.get("entity_id"),
            entity_type=data.get("entity_type"),
            only_owned=data.get("only_owned", False),
            options=data.get("options"),
            scope=data.get("scope"),
            created_at=_load_datetime(data.get("created_at")),
            updated_at=_load_datetime(data.get("updated_at")),
        )
    
    def _serialize_permission(self, permission: Permission) -> Dict[str, Any]:
        return {
            "id": permission.id,
            "ability_id": permission.ability_id,
            "entity_id": permission.entity_id,
            "entity_type": _enum_value(permission.entity_type),
            "forbidden": permission.forbidden,
            "scope": permission.scope,
            "ability": (
                self._serialize_ability(permission.ability)
                if permission.ability is not None else None
            ),
        }
    
    def _deserialize_permission(self, data: Dict[str, Any]) -> Permission:
        ability_data = data.get("ability")
        entity_type = data.get("entity_type")
        return Permission(
            id=data["id"],
            ability_id=data["ability_id"],
            entity_id=data.get("entity_id"),
            entity_type=EntityType(entity_type) if entity_type is not None else None,
            forbidden=data.get("forbidden", False),
            scope=data.get("scope"),
            ability=self._deserialize_ability(ability_data) if ability_data is not None else None,
        )
