"""Permission domain entity for the RBAC feature.

A permission binds one ability to one subject (a user or a role), either
granting it or, when ``forbidden`` is set, explicitly denying it.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from .ability import Ability
from .entity import EntityType


@dataclass
class Permission:
    """Grant or forbid of an ability for a subject entity."""
    
    id: Optional[int]
    ability_id: int
    entity_id: Optional[int] = None
    entity_type: Optional[EntityType] = None
    forbidden: bool = False
    scope: Optional[int] = None
    ability: Optional[Ability] = None
    
    @property
    def ability_name(self) -> Optional[str]:
        """Name of the joined ability, None when the ability is not loaded."""
        if self.ability is None:
            return None
        return self.ability.name
    
    def __repr__(self) -> str:
        verb = "forbid" if self.forbidden else "allow"
        target = self.ability if self.ability is not None else f"ability#{self.ability_id}"
        return f"Permission({verb} {target} for {self.entity_type}#{self.entity_id})"


# Resolved permissions of one subject, grouped by ability name
PermissionMap = Dict[str, List[Permission]]
