"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/routing", status_code=status.HTTP_200_OK)
async def health_routing() -> dict:
    """Check routing service health."""
    from ...services.routing.client import check_health

    try:
        healthy = await check_health()
        return {"service": "routing", "url": settings.routing_base_url, "healthy": healthy}
    except Exception as e:
        return {"service": "routing", "url": settings.routing_base_url, "healthy": False, "error": str(e)}
