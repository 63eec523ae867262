"""Environment-driven configuration with Pydantic v2."""

from typing import List, Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings driven entirely by environment variables."""

    # Server Configuration
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3010, ge=1024, le=65535)
    debug: bool = Field(default=False)
    workers: int = Field(default=1, ge=1, le=8)

    # Security
    cors_origins: List[str] = Field(default=["*"])

    # Indexer database (read-only)
    database_url: str = Field(default="postgresql+asyncpg://explorer@localhost:5432/explorer")
    database_echo: bool = Field(default=False)
    database_pool_size: int = Field(default=20, ge=5, le=100)
    database_max_overflow: int = Field(default=30, ge=10, le=100)

    # Cache Configuration
    redis_url: Optional[str] = Field(default=None)
    redis_enabled: bool = Field(default=False)
    cache_ttl: int = Field(default=60, ge=1)
    cache_lock_ttl: int = Field(default=30, ge=1, le=600)  # single-flight marker lifetime
    cache_lock_wait: float = Field(default=5.0, ge=0.0, le=60.0)
    cache_poll_interval: float = Field(default=0.05, gt=0.0, le=5.0)

    # NEAR RPC
    rpc_url: str = Field(default="https://rpc.mainnet.near.org")
    rpc_timeout: float = Field(default=10.0, ge=1.0, le=120.0)
    rpc_finality: Literal["final", "optimistic"] = Field(default="final")

    # Logging
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    log_file: Optional[str] = Field(default=None)

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v):
        """Accept only redis:// style URLs."""
        if v and not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("redis_url must start with redis://, rediss:// or unix://")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.debug

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    model_config = {
        "env_file": "../.env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "env_parse_none_str": "none",
        "env_nested_delimiter": "__",
    }
