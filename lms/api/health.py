"""Health and readiness endpoints.

  /health (liveness):  "Is this process alive?"  Always 200 while the
                       process can answer; the body reports dependency
                       status ("ok" or "degraded").
  /ready (readiness):  "Can this instance take traffic?"  503 when the
                       database is configured but unreachable, so the
                       load balancer stops routing here without a restart.

Redis is never critical: the cache and the task queue have in-memory
fallbacks, and a lost cache entry only costs a recomputation.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from lms.db.engine import ping_database
from lms.db.redis import redis_pool

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _check_redis() -> str:
    if redis_pool is None:
        return "not_configured"
    try:
        await redis_pool.ping()  # type: ignore[misc]
    except Exception:
        logger.warning("Redis health check failed", exc_info=True)
        return "degraded"
    return "ok"


async def _check_database() -> str:
    reachable = await ping_database()
    if reachable is None:
        return "not_configured"
    return "ok" if reachable else "degraded"


@router.get("/health")
async def health() -> dict:
    """Liveness check + dependency status.

    Returns 200 even when degraded; a 503 here would get the container
    restarted, which is too aggressive for a partial outage.
    """
    checks = {
        "database": await _check_database(),
        "redis": await _check_redis(),
    }
    overall = "degraded" if "degraded" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    """Readiness check: 503 while the database is unreachable."""
    if await _check_database() == "degraded":
        return Response(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)
    return Response(status_code=status.HTTP_200_OK)
