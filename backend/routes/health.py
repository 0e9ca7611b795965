"""Health and readiness check routes."""

import logging

from fastapi import APIRouter, Depends

from config import settings
from routes.proxy import get_proxy
from services.proxy_cache import ProxyCache

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ready")
async def ready() -> dict:
    """Lightweight readiness check, no external calls."""
    return {"status": "ok", "service": "coingecko-proxy", "commit": settings.git_sha}


@router.get("/health")
async def health(proxy_cache: ProxyCache = Depends(get_proxy)) -> dict:
    """Proxy health. Never calls upstream, so it costs no API quota."""
    configured = proxy_cache.is_configured
    if not configured:
        logger.warning("Health check: COINGECKO_API_KEY is not configured")

    return {
        "status": "ok" if configured else "degraded",
        "message": "Proxy is alive!",
        "service": "coingecko-proxy",
        "commit": settings.git_sha,
        "api_key_configured": configured,
        "cache_entries": len(proxy_cache.cache),
    }
