"""Health check endpoint."""

import time
from fastapi import APIRouter, Request

from wardrobe_planner.models.responses import HealthResponse, HealthDependency

router = APIRouter()

_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """System health check with dependency status."""
    dependencies = {}

    # Check Redis
    try:
        redis = request.app.state.redis
        start = time.time()
        await redis.ping()
        latency = (time.time() - start) * 1000
        dependencies["redis"] = HealthDependency(status="healthy", latency_ms=round(latency, 2))
    except Exception as e:
        dependencies["redis"] = HealthDependency(status="unhealthy", message=str(e))

    # SMTP is only checked for configuration; connecting on every probe is too slow
    if request.app.state.mailer.configured:
        dependencies["smtp"] = HealthDependency(status="healthy")
    else:
        dependencies["smtp"] = HealthDependency(status="degraded", message="EMAIL_USER/EMAIL_PASS not set")

    if all(d.status == "healthy" for d in dependencies.values()):
        status = "healthy"
    elif dependencies["redis"].status == "unhealthy":
        status = "unhealthy"
    else:
        status = "degraded"

    return HealthResponse(
        status=status,
        uptime_seconds=round(time.time() - _start_time, 2),
        dependencies=dependencies,
    )
