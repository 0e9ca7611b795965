"""CoinGecko proxy route. Clients reach upstream only through here."""

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse

from services.proxy_cache import ProxyCache

router = APIRouter()


def get_proxy(request: Request) -> ProxyCache:
    """The per-process ProxyCache built in create_app()."""
    return request.app.state.proxy


@router.get("/proxy")
async def proxy(
    endpoint: str | None = Query(None),
    proxy_cache: ProxyCache = Depends(get_proxy),
) -> JSONResponse:
    """Return the upstream JSON body for ``endpoint`` verbatim (cached for the TTL)."""
    payload = await proxy_cache.resolve(endpoint)
    return JSONResponse(payload)


@router.options("/proxy")
async def proxy_preflight() -> Response:
    return Response(status_code=200)
