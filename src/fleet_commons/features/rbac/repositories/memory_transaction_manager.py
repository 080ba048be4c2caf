"""Transaction managers for repositories without a database connection."""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from .memory_rbac_repository import MemoryRBACRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MemoryTransactionManager:
    """Unit of work over a memory repository.
    
    The repository state is captured before the work runs and restored if
    the work raises. Units of work are serialised.
    """
    
    def __init__(self, repository: MemoryRBACRepository):
        self.repository = repository
        self._lock = asyncio.Lock()
    
    async def do(self, work: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            state = self.repository.snapshot()
            try:
                return await work()
            except BaseException as e:
                self.repository.restore(state)
                logger.debug(f"Transaction rolled back: {e!r}")
                raise


class NullTransactionManager:
    """Runs work with no transaction boundary."""
    
    async def do(self, work: Callable[[], Awaitable[T]]) -> T:
        return await work()
