"""Pytest configuration and fixtures for fleet-commons tests."""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from fleet_commons.config.settings import get_rbac_settings
from fleet_commons.features.rbac.entities import (
    Ability,
    AbilityName,
    AssignedRole,
    EntityType,
    Permission,
    Role,
)
from fleet_commons.features.rbac.repositories import (
    MemoryRBACRepository,
    NullTransactionManager,
)
from fleet_commons.features.rbac.services import RBACService


# Users of the shared fixture data
ADMIN_USER_ID = 1
REGULAR_USER_ID = 2
FORBIDDEN_USER_ID = 3
GLOBAL_USER_ID = 4
NO_PERM_USER_ID = 5

ADMIN_ROLE_ID = 1
USER_ROLE_ID = 2


class FakeClock:
    """Manually advanced monotonic clock."""
    
    def __init__(self, now: float = 1000.0):
        self.now = now
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


def sample_abilities():
    return [
        Ability(id=1, name=AbilityName.ADMIN_ROLES_PERMISSIONS),
        Ability(id=2, name=AbilityName.VIEW),
        Ability(id=3, name=AbilityName.EDIT),
        
        # Entity-specific abilities
        Ability(id=101, name=AbilityName.VIEW, entity_type=EntityType.SERVER),
        Ability(id=201, name=AbilityName.VIEW, entity_type=EntityType.SERVER, entity_id=1),
        Ability(id=202, name=AbilityName.VIEW, entity_type=EntityType.SERVER, entity_id=123),
    ]


def sample_roles():
    return [
        Role(id=ADMIN_ROLE_ID, name="admin"),
        Role(id=USER_ROLE_ID, name="user"),
    ]


def sample_permissions():
    return [
        Permission(id=None, ability_id=1, entity_id=ADMIN_ROLE_ID, entity_type=EntityType.ROLE),
        Permission(id=None, ability_id=2, entity_id=ADMIN_ROLE_ID, entity_type=EntityType.ROLE),
        Permission(id=None, ability_id=2, entity_id=USER_ROLE_ID, entity_type=EntityType.ROLE),
        
        Permission(id=None, ability_id=2, entity_id=FORBIDDEN_USER_ID, entity_type=EntityType.USER, forbidden=True),
        Permission(id=None, ability_id=3, entity_id=GLOBAL_USER_ID, entity_type=EntityType.USER),
        
        # Entity-specific permissions
        Permission(id=None, ability_id=101, entity_id=GLOBAL_USER_ID, entity_type=EntityType.USER),
        Permission(id=None, ability_id=201, entity_id=FORBIDDEN_USER_ID, entity_type=EntityType.USER, forbidden=True),
        Permission(id=None, ability_id=202, entity_id=REGULAR_USER_ID, entity_type=EntityType.USER),
    ]


def sample_assigned_roles():
    return [
        AssignedRole(
            id=1,
            role_id=ADMIN_ROLE_ID,
            entity_id=ADMIN_USER_ID,
            entity_type=EntityType.USER,
        ),
        AssignedRole(
            id=2,
            role_id=USER_ROLE_ID,
            entity_id=REGULAR_USER_ID,
            entity_type=EntityType.USER,
            restricted_to_id=123,
            restricted_to_type=EntityType.SERVER,
        ),
    ]


async def seed_repository(repository, roles=(), assigned_roles=(), abilities=(), permissions=()):
    """Load rows into a memory repository."""
    for ability in abilities:
        await repository.save_ability(ability)
    for role in roles:
        await repository.save_role(role)
    for permission in permissions:
        await repository.save_permission(permission)
    for assigned_role in assigned_roles:
        await repository.save_assigned_role(assigned_role)
    return repository


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are cached per process; reset between tests."""
    get_rbac_settings.cache_clear()
    yield
    get_rbac_settings.cache_clear()


@pytest.fixture
def fake_clock():
    """Clock starting at 1000.0 seconds."""
    return FakeClock()


@pytest.fixture
def memory_repository():
    """Empty memory repository."""
    return MemoryRBACRepository()


@pytest_asyncio.fixture
async def seeded_repository(memory_repository):
    """Memory repository holding the shared users, roles and grants."""
    return await seed_repository(
        memory_repository,
        roles=sample_roles(),
        assigned_roles=sample_assigned_roles(),
        abilities=sample_abilities(),
        permissions=sample_permissions(),
    )


@pytest_asyncio.fixture
async def rbac_service(seeded_repository):
    """RBAC service over the shared data with caching disabled."""
    service = RBACService(NullTransactionManager(), seeded_repository, cache_ttl_seconds=0)
    yield service
    await service.close()


@pytest.fixture
def mock_rbac_repository():
    """Mock RBAC repository for testing."""
    repository = AsyncMock()
    repository.get_roles = AsyncMock(return_value=[])
    repository.get_permissions = AsyncMock(return_value=[])
    repository.get_roles_for_entity = AsyncMock(return_value=[])
    repository.assign_roles_for_entity = AsyncMock()
    repository.clear_roles_for_entity = AsyncMock()
    repository.allow = AsyncMock()
    repository.forbid = AsyncMock()
    repository.revoke = AsyncMock()
    return repository


@pytest.fixture
def mock_redis_client():
    """Mock asyncio Redis client with an empty cache."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    return client


@pytest.fixture
def seed():
    """Helper loading rows into a memory repository."""
    return seed_repository
