"""Health and readiness endpoints.

/health is the liveness probe and reports dependency status; it answers
200 even when degraded so an orchestrator does not restart the process
over a Redis outage.  /ready always passes: Redis only carries the email
queue, and the service can run without it.
"""

from __future__ import annotations

from fastapi import APIRouter, Response

from qualityedu.db import engine as db_engine
from qualityedu.db.redis import redis_pool

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    checks: dict[str, str] = {}
    overall = "ok"

    if redis_pool is not None:
        try:
            await redis_pool.ping()  # type: ignore[misc]
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "degraded"
            overall = "degraded"
    else:
        checks["redis"] = "not_configured"

    checks["database"] = "configured" if db_engine.engine is not None else "in_memory"

    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
