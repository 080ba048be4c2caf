"""Protocol interfaces for RBAC feature dependency injection.

Defines the storage contract the RBAC service consumes and the unit-of-work
boundary it runs mutations in. Implementations live in ``repositories/``.
"""

from abc import abstractmethod
from typing import Awaitable, Callable, List, Protocol, Sequence, TypeVar, runtime_checkable

from .ability import Ability
from .entity import EntityType
from .permission import Permission
from .role import Role, RestrictedRole


T = TypeVar("T")


@runtime_checkable
class RBACRepository(Protocol):
    """Protocol for role, permission and ability data access."""
    
    @abstractmethod
    async def get_roles(self) -> List[Role]:
        """Get the full role catalog."""
        ...
    
    @abstractmethod
    async def get_permissions(self, entity_id: int, entity_type: EntityType) -> List[Permission]:
        """Get permissions of a subject with their abilities joined."""
        ...
    
    @abstractmethod
    async def get_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> List[RestrictedRole]:
        """Get roles assigned to a subject with their restrictions."""
        ...
    
    @abstractmethod
    async def assign_roles_for_entity(
        self,
        entity_id: int,
        entity_type: EntityType,
        roles: Sequence[RestrictedRole]
    ) -> None:
        """Assign roles to a subject."""
        ...
    
    @abstractmethod
    async def clear_roles_for_entity(self, entity_id: int, entity_type: EntityType) -> None:
        """Remove every role assignment of a subject."""
        ...
    
    @abstractmethod
    async def allow(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        """Grant abilities to a subject, creating missing abilities."""
        ...
    
    @abstractmethod
    async def forbid(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        """Explicitly deny abilities to a subject, creating missing abilities."""
        ...
    
    @abstractmethod
    async def revoke(self, entity_id: int, entity_type: EntityType, abilities: Sequence[Ability]) -> None:
        """Delete the subject's permissions for the given abilities."""
        ...


@runtime_checkable
class TransactionManager(Protocol):
    """Protocol for running work inside a transaction boundary.
    
    If ``work`` raises, the transaction is rolled back and the exception
    propagates unchanged.
    """
    
    @abstractmethod
    async def do(self, work: Callable[[], Awaitable[T]]) -> T:
        """Run ``work`` in a transaction and return its result."""
        ...


@runtime_checkable
class CachedRBACRepository(RBACRepository, Protocol):
    """Protocol for repositories caching reads outside the transaction.
    
    Reads made inside a unit of work may be cached before the unit commits,
    so the service drops the subject's entries when a unit of work fails.
    """
    
    @abstractmethod
    async def invalidate_entity(self, entity_id: int, entity_type: EntityType) -> None:
        """Drop cached roles and permissions of a subject."""
        ...
    
    @abstractmethod
    async def close(self) -> None:
        """Release the cache backend if the repository owns it."""
        ...
