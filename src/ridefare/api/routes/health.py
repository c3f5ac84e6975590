"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "OK", "message": "Serveur opérationnel"}


@router.get("/health/mapbox", status_code=status.HTTP_200_OK)
async def health_mapbox() -> dict:
    """Check Mapbox configuration and reachability."""
    from ...services.mapping.mapbox_client import check_health

    if not settings.mapbox_token:
        return {"service": "mapbox", "configured": False, "healthy": False}
    return {"service": "mapbox", "configured": True, "healthy": await check_health()}
