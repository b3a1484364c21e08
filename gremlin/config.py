"""Centralized configuration via pydantic-settings.

Application-level knobs only: the dispatch core (handler, executor, router)
never reads settings and takes everything by injection.
Override any value via environment variable (e.g., ``GREMLIN_BASE_PATH=/rpc``).
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from ``GREMLIN_``-prefixed environment variables."""

    # --- HTTP surface ---
    BASE_PATH: str = "/api/gremlin"
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]
    MAX_REQUEST_BODY_SIZE: int = 1_048_576  # 1 MB max request body

    # --- Auth ---
    API_KEY: SecretStr = SecretStr("")  # When set, Bearer/X-API-Key requests get API_USER_ID's session
    API_USER_ID: str = "api"
    API_USER_ROLES: list[str] = ["admin"]
    SESSION_TTL_SECONDS: int = 86400

    # --- Pagination ---
    DEFAULT_PAGE_SIZE: int = 50
    MAX_PAGE_SIZE: int = 100

    # --- Observability ---
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    VERSION: str = "0.1.0"

    model_config = {"env_prefix": "GREMLIN_", "case_sensitive": True}

    @model_validator(mode="after")
    def validate_page_sizes(self) -> "Settings":
        """Validate pagination limits are consistent."""
        if self.DEFAULT_PAGE_SIZE > self.MAX_PAGE_SIZE:
            raise ValueError(
                f"DEFAULT_PAGE_SIZE ({self.DEFAULT_PAGE_SIZE}) must not exceed "
                f"MAX_PAGE_SIZE ({self.MAX_PAGE_SIZE})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
