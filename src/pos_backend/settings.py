"""
pos_backend.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (e.g., JWT secret).
- Carry the deployment's role policy selection.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pos_backend.auth.models import Role


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="POS_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "pos-backend"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 5000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "pos-backend"
    jwt_audience: str = "pos-api"
    jwt_secret: str = Field(default="dev-secret-change-me-0123456789abcdef", repr=False)
    token_ttl_minutes: int = Field(default=8 * 60, ge=1)
    token_leeway_seconds: int = Field(default=0, ge=0)
    # False: the role inside a verified token is trusted as-is.
    # True: every request re-reads the user row and uses its current role.
    verify_identity_against_store: bool = False

    # Authorization policy: a named version plus per-operation overrides,
    # e.g. POS_ROLE_POLICY_OVERRIDES='{"order.create": ["admin", "cashier"]}'
    role_policy_version: str = "v1"
    role_policy_overrides: dict[str, list[Role]] = Field(default_factory=dict)

    # Catalog
    default_item_stock: int = Field(default=999, ge=0)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./pos.db"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The role policy itself lives in `auth.policy`; settings only pick a version and
# patch individual operations so deployments don't need code changes.
