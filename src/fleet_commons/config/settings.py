"""
RBAC configuration for the fleet backend.

Settings are read from ``RBAC_*`` environment variables or a ``.env`` file.
"""
from typing import Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, RedisDsn, field_validator


class RBACSettings(BaseSettings):
    """Settings for the RBAC engine and its caches."""
    
    model_config = SettingsConfigDict(
        env_prefix="RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )
    
    # In-process permission cache (0 disables caching)
    cache_ttl_seconds: float = Field(default=60.0)
    cache_cleanup_interval_seconds: float = Field(default=300.0)  # 5 minutes
    
    # Optional Redis read-through cache in front of the repository
    redis_url: Optional[RedisDsn] = Field(default=None)
    redis_cache_ttl_seconds: int = Field(default=86400)  # 24 hours
    redis_key_prefix: str = Field(default="fleet:rbac")
    
    @field_validator("cache_ttl_seconds", "redis_cache_ttl_seconds")
    @classmethod
    def _validate_ttl(cls, value):
        if value < 0:
            raise ValueError("TTL must not be negative")
        return value
    
    @field_validator("cache_cleanup_interval_seconds")
    @classmethod
    def _validate_cleanup_interval(cls, value):
        if value <= 0:
            raise ValueError("Cleanup interval must be positive")
        return value
    
    @property
    def is_permission_cache_enabled(self) -> bool:
        """Check if the in-process permission cache is enabled."""
        return self.cache_ttl_seconds > 0
    
    @property
    def is_redis_cache_enabled(self) -> bool:
        """Check if Redis caching is configured."""
        return self.redis_url is not None


@lru_cache()
def get_rbac_settings() -> RBACSettings:
    """Get cached RBAC settings instance."""
    return RBACSettings()
