import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app
from services.cache import TTLCache
from services.proxy_cache import ProxyCache

from conftest import API_KEY, API_KEY_HEADER, BASE_URL

BITCOIN = {"id": "bitcoin", "market_data": {"current_price": {"usd": 65000}}}


@pytest.fixture
def client(settings, proxy):
    return TestClient(create_app(settings=settings, proxy=proxy))


@pytest.fixture
def unconfigured_client(settings, upstream, clock):
    proxy = ProxyCache(
        cache=TTLCache(clock=clock),
        base_url=BASE_URL,
        api_key=None,
        api_key_header=API_KEY_HEADER,
        transport=upstream.transport,
    )
    return TestClient(create_app(settings=settings, proxy=proxy))


class TestProxyRoute:
    def test_missing_endpoint_returns_400(self, client, upstream):
        resp = client.get("/proxy")

        assert resp.status_code == 400
        assert resp.json() == {"error": "Endpoint query parameter is required"}
        assert upstream.calls == 0

    def test_empty_endpoint_returns_400(self, client):
        resp = client.get("/proxy", params={"endpoint": ""})
        assert resp.status_code == 400

    def test_missing_api_key_returns_500(self, unconfigured_client, upstream):
        resp = unconfigured_client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "API key is not configured on the server."}
        assert upstream.calls == 0

    def test_success_passes_body_through_and_caches(self, client, upstream):
        upstream.respond(httpx.Response(200, json=BITCOIN))

        first = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})
        second = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert first.status_code == 200
        assert first.json() == BITCOIN
        assert second.json() == BITCOIN
        assert upstream.calls == 1

    def test_endpoint_query_string_forwarded(self, client, upstream):
        upstream.respond(httpx.Response(200, json=[{"id": "bitcoin"}]))

        resp = client.get("/proxy", params={"endpoint": "/coins/markets?vs_currency=usd&ids=bitcoin"})

        assert resp.json() == [{"id": "bitcoin"}]
        assert str(upstream.requests[0].url) == f"{BASE_URL}/coins/markets?vs_currency=usd&ids=bitcoin"

    def test_upstream_status_and_body_passed_through(self, client, upstream):
        upstream.respond(httpx.Response(429, json={"status": {"error_message": "rate limited"}}))

        resp = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert resp.status_code == 429
        assert resp.json() == {"error": {"status": {"error_message": "rate limited"}}}

    def test_upstream_404_text_body(self, client, upstream):
        upstream.respond(httpx.Response(404, text="Not Found"))

        resp = client.get("/proxy", params={"endpoint": "/coins/nope"})

        assert resp.status_code == 404
        assert resp.json() == {"error": "Not Found"}

    def test_network_error_returns_generic_500(self, client, upstream):
        upstream.respond(httpx.ConnectError("connection refused"))

        resp = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal Server Error"}

    def test_nan_body_returns_500_and_is_refetched(self, client, upstream):
        upstream.respond(httpx.Response(200, content=b'{"price": NaN}'), httpx.Response(200, json=BITCOIN))

        first = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})
        second = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert first.status_code == 500
        assert first.json() == {"error": "Upstream returned a malformed JSON body."}
        assert second.json() == BITCOIN
        assert upstream.calls == 2

    def test_endpoint_with_control_character_returns_400(self, client, upstream):
        resp = client.get("/proxy", params={"endpoint": "/coins/bit\x00coin"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "Endpoint is not a valid URL path"}
        assert upstream.calls == 0

    def test_malformed_json_returns_500(self, client, upstream):
        upstream.respond(httpx.Response(200, text="{broken"))

        resp = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert resp.status_code == 500
        assert "error" in resp.json()

    def test_api_key_never_echoed(self, client, upstream):
        upstream.respond(httpx.Response(200, json=BITCOIN))

        resp = client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        assert API_KEY not in resp.text
        assert all(API_KEY not in v for v in resp.headers.values())


class TestCors:
    def test_plain_options_returns_empty_200(self, client):
        resp = client.options("/proxy")

        assert resp.status_code == 200
        assert resp.content == b""

    def test_preflight_allows_any_origin(self, client):
        resp = client.options(
            "/proxy",
            headers={"Origin": "https://dashboard.example", "Access-Control-Request-Method": "GET"},
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "GET" in resp.headers["access-control-allow-methods"]

    def test_preflight_allows_arbitrary_request_headers(self, client):
        resp = client.options(
            "/proxy",
            headers={
                "Origin": "https://dashboard.example",
                "Access-Control-Request-Method": "GET",
                "Access-Control-Request-Headers": "X-Requested-With, Authorization",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_simple_request_gets_cors_header(self, client, upstream):
        upstream.respond(httpx.Response(200, json=BITCOIN))

        resp = client.get(
            "/proxy",
            params={"endpoint": "/coins/bitcoin"},
            headers={"Origin": "https://dashboard.example"},
        )

        assert resp.headers["access-control-allow-origin"] == "*"
        assert resp.headers["x-content-type-options"] == "nosniff"


class TestHealth:
    def test_ready(self, client):
        resp = client.get("/ready")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["service"] == "coingecko-proxy"

    def test_health_reports_cache_without_upstream_call(self, client, upstream):
        upstream.respond(httpx.Response(200, json=BITCOIN))
        client.get("/proxy", params={"endpoint": "/coins/bitcoin"})

        resp = client.get("/health")

        body = resp.json()
        assert body["status"] == "ok"
        assert body["message"] == "Proxy is alive!"
        assert body["api_key_configured"] is True
        assert body["cache_entries"] == 1
        assert upstream.calls == 1
        assert API_KEY not in resp.text

    def test_health_degraded_without_api_key(self, unconfigured_client):
        body = unconfigured_client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["api_key_configured"] is False
