"""RBAC repositories package.

Storage implementations of the RBAC repository and transaction protocols.
"""

from .memory_rbac_repository import MemoryRBACRepository
from .memory_transaction_manager import MemoryTransactionManager, NullTransactionManager
from .redis_cached_rbac_repository import RedisCachedRBACRepository

__all__ = [
    "MemoryRBACRepository",
    "MemoryTransactionManager",
    "NullTransactionManager",
    "RedisCachedRBACRepository",
]
