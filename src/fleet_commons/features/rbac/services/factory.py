"""Factory building an RBAC service from settings."""

import logging
from typing import Optional

import redis.asyncio as redis

from ....config.settings import RBACSettings, get_rbac_settings
from ..entities import RBACRepository, TransactionManager
from ..repositories import RedisCachedRBACRepository
from .rbac_service import RBACService

logger = logging.getLogger(__name__)


def create_rbac_service(
    transaction_manager: TransactionManager,
    repository: RBACRepository,
    settings: Optional[RBACSettings] = None,
    redis_client: Optional[redis.Redis] = None
) -> RBACService:
    """Create an RBAC service.
    
    When Redis caching is configured the repository is wrapped in a
    ``RedisCachedRBACRepository``. ``redis_client`` overrides the client
    built from ``settings.redis_url``. A client built here is closed by
    ``RBACService.close()``; a passed client stays owned by the caller.
    
    Args:
        transaction_manager: Unit of work boundary for mutations
        repository: Storage of roles, abilities and permissions
        settings: RBAC settings, read from the environment when omitted
        redis_client: Optional pre-built Redis client
        
    Returns:
        Configured RBACService instance
    """
    settings = settings or get_rbac_settings()
    
    owns_client = False
    if redis_client is None and settings.is_redis_cache_enabled:
        redis_client = redis.from_url(str(settings.redis_url))
        owns_client = True
    
    if redis_client is not None:
        repository = RedisCachedRBACRepository(
            inner=repository,
            redis_client=redis_client,
            ttl_seconds=settings.redis_cache_ttl_seconds,
            key_prefix=settings.redis_key_prefix,
            owns_client=owns_client,
        )
        logger.debug(f"RBAC repository cached in Redis under {settings.redis_key_prefix}")
    
    if not settings.is_permission_cache_enabled:
        logger.info("RBAC permission cache disabled")
    
    return RBACService(
        transaction_manager=transaction_manager,
        repository=repository,
        cache_ttl_seconds=settings.cache_ttl_seconds,
        cleanup_interval_seconds=settings.cache_cleanup_interval_seconds,
    )
