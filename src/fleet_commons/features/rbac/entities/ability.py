"""Ability domain entity for the RBAC feature.

An ability is a named capability, optionally scoped to a kind of entity
(``entity_type``) or to one entity instance (``entity_type`` + ``entity_id``).
Abilities are reference data: they are created administratively and are
never mutated, hence frozen.
"""

from datetime import datetime, timezone
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from ....core.exceptions import RBACValidationError
from .entity import EntityType


class AbilityName(str, Enum):
    """Catalog of ability names."""
    
    # Game server abilities
    GAME_SERVER_COMMON = "game-server-common"
    GAME_SERVER_START = "game-server-start"
    GAME_SERVER_STOP = "game-server-stop"
    GAME_SERVER_RESTART = "game-server-restart"
    GAME_SERVER_PAUSE = "game-server-pause"
    GAME_SERVER_UPDATE = "game-server-update"
    GAME_SERVER_FILES = "game-server-files"
    GAME_SERVER_TASKS = "game-server-tasks"
    GAME_SERVER_SETTINGS = "game-server-settings"
    GAME_SERVER_CONSOLE_VIEW = "game-server-console-view"
    GAME_SERVER_CONSOLE_SEND = "game-server-console-send"
    GAME_SERVER_RCON_CONSOLE = "game-server-rcon-console"
    GAME_SERVER_RCON_PLAYERS = "game-server-rcon-players"
    
    # General
    CREATE = "create"
    VIEW = "view"
    EDIT = "edit"
    DELETE = "delete"
    
    # Admin
    ADMIN_ROLES_PERMISSIONS = "admin roles & permissions"


SERVER_ABILITIES = (
    AbilityName.GAME_SERVER_COMMON,
    AbilityName.GAME_SERVER_START,
    AbilityName.GAME_SERVER_STOP,
    AbilityName.GAME_SERVER_RESTART,
    AbilityName.GAME_SERVER_PAUSE,
    AbilityName.GAME_SERVER_UPDATE,
    AbilityName.GAME_SERVER_FILES,
    AbilityName.GAME_SERVER_TASKS,
    AbilityName.GAME_SERVER_SETTINGS,
    AbilityName.GAME_SERVER_CONSOLE_VIEW,
    AbilityName.GAME_SERVER_CONSOLE_SEND,
    AbilityName.GAME_SERVER_RCON_CONSOLE,
    AbilityName.GAME_SERVER_RCON_PLAYERS,
)


@dataclass(frozen=True)
class Ability:
    """Domain entity representing a named capability and its scope."""
    
    id: Optional[int]
    name: Union[AbilityName, str]
    title: Optional[str] = None
    entity_id: Optional[int] = None
    entity_type: Optional[EntityType] = None
    only_owned: bool = False
    options: Optional[str] = None
    scope: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    
    def __post_init__(self):
        """Validate ability scope consistency."""
        if not self.name:
            raise RBACValidationError("Ability name cannot be empty")
        
        if self.entity_type is not None and not isinstance(self.entity_type, EntityType):
            try:
                object.__setattr__(self, "entity_type", EntityType(self.entity_type))
            except ValueError:
                raise RBACValidationError(f"Unknown ability entity type: {self.entity_type!r}")
        
        if self.entity_id is not None and self.entity_type is None:
            raise RBACValidationError(
                f"Ability {self.name} has entity_id={self.entity_id} but no entity_type"
            )
    
    @property
    def is_global(self) -> bool:
        """Check if ability applies everywhere (no entity scoping)."""
        return self.entity_type is None and self.entity_id is None
    
    @property
    def is_type_wide(self) -> bool:
        """Check if ability applies to every entity of one type."""
        return self.entity_type is not None and self.entity_id is None
    
    def matches_target(self, entity_type: EntityType, entity_id: int) -> bool:
        """Check if ability covers the given entity: globally, type-wide or exactly."""
        if self.is_global:
            return True
        if self.entity_type != entity_type:
            return False
        return self.entity_id is None or self.entity_id == entity_id
    
    def same_key(self, other: "Ability") -> bool:
        """Check if both abilities share the catalog uniqueness key."""
        return (
            self.name == other.name
            and self.entity_id == other.entity_id
            and self.entity_type == other.entity_type
            and self.scope == other.scope
        )
    
    def __str__(self) -> str:
        name = self.name.value if isinstance(self.name, AbilityName) else self.name
        if self.is_global:
            return f"Ability({name})"
        if self.entity_id is None:
            return f"Ability({name} on all {self.entity_type.value})"
        return f"Ability({name} on {self.entity_type.value}#{self.entity_id})"


def create_ability_for_entity(
    name: Union[AbilityName, str],
    entity_id: int,
    entity_type: EntityType
) -> Ability:
    """Build an unsaved ability scoped to one entity instance."""
    now = datetime.now(timezone.utc)
    return Ability(
        id=None,
        name=name,
        entity_id=entity_id,
        entity_type=entity_type,
        only_owned=False,
        options=None,
        scope=None,
        created_at=now,
        updated_at=now,
    )
