"""Azure Functions variant of the proxy route (served at /api/proxy).

Same contract as routes/proxy.py. The Functions host has no CORS
middleware here, so the headers are set on every response.
"""

import json
import logging

import azure.functions as func

from errors import ProxyError, error_body
from services.proxy_cache import ProxyCache

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _json_response(body, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps(body),
        status_code=status_code,
        headers=CORS_HEADERS,
        mimetype="application/json",
    )


async def handle_proxy_request(proxy_cache: ProxyCache, req: func.HttpRequest) -> func.HttpResponse:
    """Serve one proxy request against the shared ProxyCache."""
    if req.method == "OPTIONS":
        return func.HttpResponse(status_code=200, headers=CORS_HEADERS)

    try:
        payload = await proxy_cache.resolve(req.params.get("endpoint"))
    except ProxyError as e:
        return _json_response(error_body(e), status_code=e.status_code)
    except Exception:
        logger.exception("Proxy function failed")
        return _json_response({"error": "Internal server error"}, status_code=500)

    return _json_response(payload)


def create_proxy_blueprint(proxy_cache: ProxyCache) -> func.Blueprint:
    bp = func.Blueprint()

    @bp.route(route="proxy", methods=["GET", "OPTIONS"])
    async def proxy(req: func.HttpRequest) -> func.HttpResponse:
        return await handle_proxy_request(proxy_cache, req)

    return bp
