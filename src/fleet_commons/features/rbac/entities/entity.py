"""Entity identification for the RBAC feature.

Subjects (users, roles) and targets (servers, nodes, ...) are addressed by
an ``(EntityType, id)`` pair. The type tokens match the values stored by
the panel database.
"""

from dataclasses import dataclass
from enum import Enum

from ....core.exceptions import RBACValidationError


class EntityType(str, Enum):
    """Kinds of entities that can own permissions or be permission targets."""
    
    USER = "Gameap\\Models\\User"
    NODE = "Gameap\\Models\\DedicatedServer"
    CLIENT_CERTIFICATE = "Gameap\\Models\\ClientCertificate"
    GAME = "Gameap\\Models\\Game"
    GAME_MOD = "Gameap\\Models\\GameMod"
    SERVER = "Gameap\\Models\\Server"
    ROLE = "roles"


@dataclass(frozen=True)
class EntityRef:
    """Immutable reference to one entity instance."""
    
    entity_type: EntityType
    entity_id: int
    
    def __post_init__(self):
        if not isinstance(self.entity_type, EntityType):
            try:
                object.__setattr__(self, "entity_type", EntityType(self.entity_type))
            except ValueError:
                raise RBACValidationError(f"Unknown entity type: {self.entity_type!r}")
        if isinstance(self.entity_id, bool) or not isinstance(self.entity_id, int) or self.entity_id < 0:
            raise RBACValidationError(f"Entity id must be a non-negative integer, got: {self.entity_id!r}")
    
    @classmethod
    def user(cls, user_id: int) -> "EntityRef":
        return cls(EntityType.USER, user_id)
    
    @classmethod
    def role(cls, role_id: int) -> "EntityRef":
        return cls(EntityType.ROLE, role_id)
    
    def __str__(self) -> str:
        return f"{self.entity_type.value}#{self.entity_id}"
