"""
Health check routes for the auth gateway
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

from auth_gateway.config import ServiceTarget
from auth_gateway.utils.dependencies import SettingsDep

router = APIRouter()


@router.get("/health")
async def health_check(request: Request, settings: SettingsDep):
    """Health check endpoint"""
    client = request.app.state.downstream_client
    downstream = {}
    for target in ServiceTarget:
        resolved = settings.resolve_target(target)
        downstream[target.value] = {
            "base_url": resolved.base_url,
            "access_key_configured": bool(resolved.access_key),
        }

    return {
        "service": settings.service_name,
        "status": "healthy" if client.started else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.service_version,
        "http_client": "started" if client.started else "stopped",
        "downstream": downstream,
    }
