"""Dependency injection container for the application."""

from dependency_injector import containers, providers

from core.config import Settings
from core.database import Database
from core.cache import CacheService
from services.account import AccountService
from services.fetcher import CachedFetcher
from services.near import NearRpcClient


class Container(containers.DeclarativeContainer):
    """Application dependency injection container."""

    settings = providers.Singleton(
        Settings,
    )

    database = providers.Singleton(
        Database,
        settings=settings
    )

    # Cache service (uses Redis when enabled and reachable, memory otherwise)
    cache = providers.Singleton(
        CacheService,
        settings=settings
    )

    rpc = providers.Singleton(
        NearRpcClient,
        settings=settings
    )

    fetcher = providers.Singleton(
        CachedFetcher,
        cache=cache,
        lock_ttl=settings.provided.cache_lock_ttl,
        lock_wait=settings.provided.cache_lock_wait,
        poll_interval=settings.provided.cache_poll_interval,
    )

    account_service = providers.Singleton(
        AccountService,
        database=database,
        rpc=rpc,
        fetcher=fetcher
    )


# Global container instance
container = Container()
