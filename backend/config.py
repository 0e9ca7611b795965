"""Centralized configuration: all env vars in one place."""

import os

COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
COINGECKO_API_KEY_HEADER = "x-cg-demo-api-key"


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")

        # CoinGecko upstream. The key stays server-side and is only ever sent as a header.
        self.coingecko_api_key: str | None = os.getenv("COINGECKO_API_KEY") or None
        self.coingecko_base_url: str = os.getenv("COINGECKO_BASE_URL", COINGECKO_BASE_URL).rstrip("/")
        self.coingecko_api_key_header: str = os.getenv("COINGECKO_API_KEY_HEADER", COINGECKO_API_KEY_HEADER)

        # Proxy cache
        self.cache_ttl_seconds: float = float(os.getenv("PROXY_CACHE_TTL_SECONDS", "600"))
        self.upstream_timeout_seconds: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "10"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing required env vars for the proxy."""
        required = ["COINGECKO_API_KEY"]
        return [var for var in required if not getattr(self, _attr_for(var))]


settings = Settings()


def _attr_for(env_var: str) -> str:
    """Map env var name to Settings attribute name."""
    mapping = {
        "COINGECKO_API_KEY": "coingecko_api_key",
    }
    return mapping.get(env_var, env_var.lower())
