"""Health check utilities.

Provides uptime tracking and dependency status for the /health endpoint.
"""
import asyncio
import time
from typing import Dict, Any, TYPE_CHECKING

if TYPE_CHECKING:
    from core.cache import CacheService
    from core.database import Database
    from services.near import NearRpcClient

# Module-level startup time tracking
_startup_time: float = 0.0


def set_startup_time() -> None:
    """Record the application startup time. Call once during lifespan startup."""
    global _startup_time
    _startup_time = time.time()


def get_uptime() -> float:
    """Get uptime in seconds since startup."""
    return time.time() - _startup_time if _startup_time else 0.0


async def get_health_status(
    database: "Database",
    cache: "CacheService",
    rpc: "NearRpcClient",
) -> Dict[str, Any]:
    """Get health status for /health endpoint.

    Returns:
        Dict containing status, uptime and per-dependency checks.
    """
    db_healthy, cache_healthy, rpc_healthy = await asyncio.gather(
        database.ping(), cache.ping(), rpc.ping()
    )

    overall_status = "healthy" if (db_healthy and cache_healthy and rpc_healthy) else "degraded"

    return {
        "status": overall_status,
        "uptime_seconds": round(get_uptime(), 1),
        "checks": {
            "database": db_healthy,
            "cache": cache_healthy,
            "rpc": rpc_healthy,
        },
        "cache_backend": "redis" if cache.is_redis_available() else "memory",
    }
