"""Role domain entities for the RBAC feature.

A role is a named bundle of permissions. Assigning a role to a subject may
restrict it to one entity type, or to one entity instance, in which case
only the role permissions for abilities inside that restriction apply.
"""

from datetime import datetime
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ....core.exceptions import RBACValidationError
from .entity import EntityType
from .permission import Permission


def _validate_restriction(
    owner: str,
    restricted_to_type: Optional[EntityType],
    restricted_to_id: Optional[int]
) -> Optional[EntityType]:
    """Validate a restriction pair and return the normalised type."""
    if restricted_to_id is not None and restricted_to_type is None:
        raise RBACValidationError(
            f"{owner} is restricted to id {restricted_to_id} without a restriction type"
        )
    if restricted_to_type is not None and not isinstance(restricted_to_type, EntityType):
        try:
            return EntityType(restricted_to_type)
        except ValueError:
            raise RBACValidationError(f"Unknown restriction type for {owner}: {restricted_to_type!r}")
    return restricted_to_type


@dataclass(frozen=True)
class Role:
    """Domain entity representing a named bundle of permissions."""
    
    id: Optional[int]
    name: str
    title: Optional[str] = None
    level: Optional[int] = None
    scope: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    def __post_init__(self):
        if not self.name:
            raise RBACValidationError("Role name cannot be empty")
    
    def __str__(self) -> str:
        return f"Role({self.name})"


@dataclass(frozen=True)
class RestrictedRole:
    """A role as bound to a subject, optionally narrowed to a scope."""
    
    role: Role
    restricted_to_type: Optional[EntityType] = None
    restricted_to_id: Optional[int] = None
    
    def __post_init__(self):
        object.__setattr__(
            self,
            "restricted_to_type",
            _validate_restriction(str(self.role), self.restricted_to_type, self.restricted_to_id),
        )
    
    @classmethod
    def from_role(cls, role: Role) -> "RestrictedRole":
        """Create an unrestricted binding of a role."""
        return cls(role=role)
    
    @property
    def id(self) -> Optional[int]:
        return self.role.id
    
    @property
    def name(self) -> str:
        return self.role.name
    
    @property
    def is_restricted(self) -> bool:
        return self.restricted_to_type is not None or self.restricted_to_id is not None
    
    def filter_permissions(self, permissions: Iterable[Permission]) -> List[Permission]:
        """Keep only the role permissions that fall inside the restriction.
        
        Restricted to a type: keep permissions whose ability has that entity type.
        Restricted to a type and id: keep permissions whose ability has that entity id.
        Abilities without the matching scope field (including global ones) are dropped.
        """
        permissions = list(permissions)
        if not self.is_restricted:
            return permissions
        
        if self.restricted_to_id is None:
            return [
                permission for permission in permissions
                if permission.ability is not None
                and permission.ability.entity_type is not None
                and permission.ability.entity_type == self.restricted_to_type
            ]
        
        return [
            permission for permission in permissions
            if permission.ability is not None
            and permission.ability.entity_id is not None
            and permission.ability.entity_id == self.restricted_to_id
        ]
    
    def __str__(self) -> str:
        if not self.is_restricted:
            return str(self.role)
        if self.restricted_to_id is None:
            return f"{self.role} on all {self.restricted_to_type.value}"
        return f"{self.role} on {self.restricted_to_type.value}#{self.restricted_to_id}"


@dataclass
class AssignedRole:
    """Stored binding of a role to a subject entity."""
    
    id: Optional[int]
    role_id: int
    entity_id: int
    entity_type: EntityType
    restricted_to_id: Optional[int] = None
    restricted_to_type: Optional[EntityType] = None
    scope: Optional[int] = None
    
    def __post_init__(self):
        self.restricted_to_type = _validate_restriction(
            f"Assigned role {self.role_id}", self.restricted_to_type, self.restricted_to_id
        )
    
    def same_binding(self, other: "AssignedRole") -> bool:
        """Check if both rows bind the same role to the same subject and scope."""
        return (
            self.role_id == other.role_id
            and self.entity_id == other.entity_id
            and self.entity_type == other.entity_type
            and self.restricted_to_id == other.restricted_to_id
            and self.restricted_to_type == other.restricted_to_type
        )
