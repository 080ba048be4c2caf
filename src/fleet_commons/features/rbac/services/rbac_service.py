"""RBAC service answering authorization checks and managing grants.

A subject's effective permissions are its direct permissions plus the
permissions of every role assigned to it, narrowed by the role's
restriction. The resolved map is cached per subject and every mutation made
through the service invalidates the affected entry.

Denying access is never an error: the ``can*`` methods answer ``False``.
Errors raised by the service mean the resolution or mutation itself failed.
"""

import logging
import time
from contextlib import contextmanager
from enum import Enum
from typing import Awaitable, Callable, Dict, Iterator, List, Sequence, Union

from ....core.exceptions import (
    InvalidRoleNameError,
    RBACError,
    RBACRepositoryError,
)
from ..cache import CLEANUP_INTERVAL_SECONDS, CacheKey, PermissionCache
from ..entities import (
    Ability,
    AbilityName,
    CachedRBACRepository,
    EntityType,
    Permission,
    PermissionMap,
    RBACRepository,
    RestrictedRole,
    Role,
    TransactionManager,
    create_ability_for_entity,
)


logger = logging.getLogger(__name__)

AbilityNameLike = Union[AbilityName, str]
AbilityNamesLike = Union[AbilityNameLike, Sequence[AbilityNameLike]]


def ability_key(name: AbilityNameLike) -> str:
    """Plain string key of an ability name, as used in a permission map."""
    if isinstance(name, Enum):
        return name.value
    return str(name)


def normalize_ability_names(abilities: AbilityNamesLike) -> List[AbilityNameLike]:
    """List of requested ability names; a single name becomes a one-item list."""
    if isinstance(abilities, str):
        return [abilities]
    return list(abilities)


@contextmanager
def repository_errors(message: str) -> Iterator[None]:
    """Wrap infrastructure failures raised inside the block.
    
    Errors of the RBAC hierarchy pass through untouched so validation errors
    stay distinguishable and nested calls are not wrapped twice.
    """
    try:
        yield
    except RBACError:
        raise
    except Exception as e:
        logger.error(f"{message}: {e}")
        raise RBACRepositoryError(f"{message}: {e}") from e


class RBACService:
    """Service resolving user permissions and enforcing ability checks."""
    
    def __init__(
        self,
        transaction_manager: TransactionManager,
        repository: RBACRepository,
        cache_ttl_seconds: float,
        cleanup_interval_seconds: float = CLEANUP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize RBAC service.
        
        Args:
            transaction_manager: Unit of work boundary for mutations
            repository: Storage of roles, abilities and permissions
            cache_ttl_seconds: Permission cache TTL, 0 disables caching
            cleanup_interval_seconds: Interval of the cache expiry sweep
            clock: Time source for the permission cache
        """
        self.transaction_manager = transaction_manager
        self.repository = repository
        self.cache = PermissionCache(
            ttl_seconds=cache_ttl_seconds,
            cleanup_interval_seconds=cleanup_interval_seconds,
            clock=clock,
        )
    
    # Permission resolution
    
    async def get_all_permissions_for_user(self, user_id: int) -> PermissionMap:
        """Resolve the effective permissions of a user, grouped by ability name.
        
        Direct permissions come first, followed by the permissions of each
        assigned role. Permissions without a loaded ability are dropped.
        """
        key = CacheKey.user(user_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        
        with repository_errors("failed to get permissions for user"):
            permissions: List[Permission] = list(
                await self.repository.get_permissions(user_id, EntityType.USER)
            )
        
        with repository_errors("failed to get roles for user"):
            roles = await self.repository.get_roles_for_entity(user_id, EntityType.USER)
        
        for role in roles:
            with repository_errors("failed to get permissions for role"):
                role_permissions = await self.repository.get_permissions(role.id, EntityType.ROLE)
            permissions.extend(role.filter_permissions(role_permissions))
        
        permission_map: PermissionMap = {}
        for permission in permissions:
            if permission.ability is None:
                continue
            permission_map.setdefault(ability_key(permission.ability.name), []).append(permission)
        
        self.cache.set(key, permission_map)
        logger.debug(
            f"Resolved {len(permissions)} permissions for user {user_id} "
            f"from {len(roles)} roles"
        )
        return permission_map
    
    def invalidate_user_permissions(self, user_id: int) -> None:
        """Drop the cached permissions of a user."""
        self.cache.delete(CacheKey.user(user_id))
    
    # Authorization checks
    
    async def can(self, user_id: int, abilities: AbilityNamesLike) -> bool:
        """Check that the user holds every ability globally.
        
        Entity-scoped grants do not count. A forbid for any requested ability
        denies the whole check.
        """
        abilities = normalize_ability_names(abilities)
        permission_map = await self.get_all_permissions_for_user(user_id)
        
        for name in abilities:
            entries = permission_map.get(ability_key(name), [])
            if any(p.forbidden for p in entries):
                logger.debug(f"User {user_id} is forbidden {ability_key(name)}")
                return False
            if not any(p.ability.is_global for p in entries):
                logger.debug(f"User {user_id} lacks global {ability_key(name)}")
                return False
        
        return True
    
    async def can_one_of(self, user_id: int, abilities: AbilityNamesLike) -> bool:
        """Check that the user holds at least one of the abilities globally.
        
        Forbidden entries are skipped rather than denying the check.
        """
        abilities = normalize_ability_names(abilities)
        permission_map = await self.get_all_permissions_for_user(user_id)
        
        for name in abilities:
            for permission in permission_map.get(ability_key(name), []):
                if not permission.forbidden and permission.ability.is_global:
                    logger.debug(f"User {user_id} granted {ability_key(name)} globally")
                    return True
        
        logger.debug(f"User {user_id} holds none of {[ability_key(n) for n in abilities]}")
        return False
    
    async def can_for_entity(
        self,
        user_id: int,
        entity_type: EntityType,
        entity_id: int,
        abilities: AbilityNamesLike
    ) -> bool:
        """Check that the user holds every ability on one entity.
        
        A grant counts when it is global, type-wide for ``entity_type`` or
        exactly for the entity. A forbid for any requested ability denies
        the whole check, whatever its scope.
        """
        entity_type = EntityType(entity_type)
        abilities = normalize_ability_names(abilities)
        permission_map = await self.get_all_permissions_for_user(user_id)
        
        for name in abilities:
            entries = permission_map.get(ability_key(name), [])
            if any(p.forbidden for p in entries):
                logger.debug(f"User {user_id} is forbidden {ability_key(name)}")
                return False
            if not any(p.ability.matches_target(entity_type, entity_id) for p in entries):
                logger.debug(
                    f"User {user_id} lacks {ability_key(name)} on {entity_type.value}#{entity_id}"
                )
                return False
        
        return True
    
    async def can_any_for_entity(
        self,
        user_id: int,
        entity_type: EntityType,
        entity_id: int,
        abilities: AbilityNamesLike
    ) -> bool:
        """Check that the user holds at least one of the abilities on one entity.
        
        A forbid whose scope covers the entity vetoes that ability only; the
        remaining abilities are still considered.
        """
        entity_type = EntityType(entity_type)
        abilities = normalize_ability_names(abilities)
        permission_map = await self.get_all_permissions_for_user(user_id)
        
        for name in abilities:
            matching = [
                p for p in permission_map.get(ability_key(name), [])
                if p.ability.matches_target(entity_type, entity_id)
            ]
            if any(p.forbidden for p in matching):
                logger.debug(f"User {user_id} is forbidden {ability_key(name)} on {entity_type.value}#{entity_id}")
                continue
            if matching:
                logger.debug(f"User {user_id} granted {ability_key(name)} on {entity_type.value}#{entity_id}")
                return True
        
        return False
    
    # Role management
    
    async def get_roles(self, user_id: int) -> List[str]:
        """Get names of the roles currently assigned to a user."""
        with repository_errors("failed to get roles for user"):
            roles = await self.repository.get_roles_for_entity(user_id, EntityType.USER)
        return [role.name for role in roles]
    
    async def set_roles_to_user(self, user_id: int, role_names: Sequence[str]) -> None:
        """Replace the roles of a user.
        
        Raises:
            InvalidRoleNameError: A name is not in the role catalog. Nothing
                is changed in that case.
            RBACRepositoryError: The repository or transaction failed.
        """
        async def work() -> None:
            with repository_errors("failed to get roles"):
                catalog: Dict[str, Role] = {role.name: role for role in await self.repository.get_roles()}
            
            restricted_roles: List[RestrictedRole] = []
            for role_name in role_names:
                role = catalog.get(role_name)
                if role is None:
                    raise InvalidRoleNameError(role_name)
                restricted_roles.append(RestrictedRole.from_role(role))
            
            with repository_errors("failed to clear roles for user"):
                await self.repository.clear_roles_for_entity(user_id, EntityType.USER)
            with repository_errors("failed to assign roles to user"):
                await self.repository.assign_roles_for_entity(user_id, EntityType.USER, restricted_roles)
        
        try:
            await self._run_in_transaction(user_id, "failed to set roles to user", work)
        except InvalidRoleNameError as e:
            logger.warning(f"Rejected roles for user {user_id}: {e}")
            raise
        
        self.invalidate_user_permissions(user_id)
        logger.info(f"Set roles {list(role_names)} to user {user_id}")
    
    # Grant management
    
    async def allow_user_abilities_for_entity(
        self,
        user_id: int,
        entity_id: int,
        entity_type: EntityType,
        ability_names: AbilityNamesLike
    ) -> None:
        """Grant the user abilities scoped to one entity.
        
        Existing permissions for the same abilities are revoked first so a
        previous forbid does not survive the grant.
        """
        abilities = self._abilities_for_entity(entity_id, entity_type, ability_names)
        
        async def work() -> None:
            with repository_errors("failed to revoke abilities for user"):
                await self.repository.revoke(user_id, EntityType.USER, abilities)
            with repository_errors("failed to allow abilities for user"):
                await self.repository.allow(user_id, EntityType.USER, abilities)
        
        try:
            await self._run_in_transaction(user_id, "failed to allow abilities for user", work)
        finally:
            self.invalidate_user_permissions(user_id)
        
        logger.info(
            f"Allowed {[str(a) for a in abilities]} for user {user_id}"
        )
    
    async def revoke_or_forbid_user_abilities_for_entity(
        self,
        user_id: int,
        entity_id: int,
        entity_type: EntityType,
        ability_names: AbilityNamesLike
    ) -> None:
        """Take abilities scoped to one entity away from the user.
        
        Direct permissions are revoked. Abilities the user still holds on the
        entity afterwards, through roles or wider grants, are forbidden.
        """
        abilities = self._abilities_for_entity(entity_id, entity_type, ability_names)
        
        async def work() -> None:
            with repository_errors("failed to revoke abilities for user"):
                await self.repository.revoke(user_id, EntityType.USER, abilities)
            self.invalidate_user_permissions(user_id)
            
            forbid_abilities: List[Ability] = []
            for ability in abilities:
                with repository_errors("failed to check abilities for user"):
                    still_held = await self.can_for_entity(
                        user_id, ability.entity_type, ability.entity_id, [ability.name]
                    )
                if still_held:
                    forbid_abilities.append(ability)
            
            if forbid_abilities:
                with repository_errors("failed to forbid abilities for user"):
                    await self.repository.forbid(user_id, EntityType.USER, forbid_abilities)
                self.invalidate_user_permissions(user_id)
                logger.info(
                    f"Forbade {[str(a) for a in forbid_abilities]} for user {user_id}"
                )
        
        try:
            await self._run_in_transaction(user_id, "failed to revoke or forbid abilities for user", work)
        finally:
            self.invalidate_user_permissions(user_id)
        
        logger.info(f"Revoked {[str(a) for a in abilities]} for user {user_id}")
    
    async def _run_in_transaction(
        self,
        user_id: int,
        message: str,
        work: Callable[[], Awaitable[None]]
    ) -> None:
        """Run a mutation of the user's grants in one unit of work.
        
        Reads inside the unit may reach a repository cache before the unit
        commits, so a failed unit drops the user's entries there as well.
        """
        try:
            with repository_errors(message):
                await self.transaction_manager.do(work)
        except Exception:
            if isinstance(self.repository, CachedRBACRepository):
                await self.repository.invalidate_entity(user_id, EntityType.USER)
            raise
    
    @staticmethod
    def _abilities_for_entity(
        entity_id: int,
        entity_type: EntityType,
        ability_names: AbilityNamesLike
    ) -> List[Ability]:
        return [
            create_ability_for_entity(name, entity_id, EntityType(entity_type))
            for name in normalize_ability_names(ability_names)
        ]
    
    async def close(self) -> None:
        """Stop the permission cache sweep and release the repository cache.
        
        The service can be closed once.
        """
        await self.cache.close()
        if isinstance(self.repository, CachedRBACRepository):
            await self.repository.close()
