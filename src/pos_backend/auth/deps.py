"""
pos_backend.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `CallerIdentity` (optionally re-checked against
  the user store).
- Enforce the role policy via a reusable dependency factory.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import structlog
from fastapi import Depends, Request
from returns.result import Failure
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.api.deps import db_session, role_policy_dep, settings_dep
from pos_backend.api.errors import http_error
from pos_backend.auth.gate import authorize
from pos_backend.auth.jwt import JwtConfig
from pos_backend.auth.models import CallerIdentity
from pos_backend.auth.policy import Operation, RolePolicy
from pos_backend.auth.verifier import CredentialVerifier, extract_bearer
from pos_backend.db.repositories.users import UserRepo
from pos_backend.errors import MalformedCredential
from pos_backend.observability.logging import get_logger
from pos_backend.settings import Settings

log = get_logger(__name__)


def jwt_cfg(settings: Settings) -> JwtConfig:
    return JwtConfig(
        alg=settings.jwt_alg,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        secret=settings.jwt_secret,
    )


def build_verifier(settings: Settings) -> CredentialVerifier:
    return CredentialVerifier(
        cfg=jwt_cfg(settings),
        leeway=timedelta(seconds=settings.token_leeway_seconds),
    )


async def get_identity(
    request: Request,
    settings: Settings = Depends(settings_dep),
    session: AsyncSession = Depends(db_session),
) -> CallerIdentity:
    token = extract_bearer(
        request.headers.get("authorization"),
        access_token_header=request.headers.get("x-access-token"),
        query_token=request.query_params.get("token"),
    )
    outcome = build_verifier(settings).verify(token)
    if isinstance(outcome, Failure):
        log.info("authentication_failed", error=outcome.failure().code)
        raise http_error(outcome.failure())
    identity = outcome.unwrap()

    if settings.verify_identity_against_store:
        user = await UserRepo(session).get(identity.user_id)
        if user is None:
            raise http_error(MalformedCredential(reason="token subject no longer exists"))
        # Live role wins over the role frozen into the token.
        identity = replace(identity, username=user.username, role=user.role)

    structlog.contextvars.bind_contextvars(
        user_id=str(identity.user_id), role=identity.role.value
    )
    return identity


def require(operation: Operation):
    def _dep(
        identity: CallerIdentity = Depends(get_identity),
        policy: RolePolicy = Depends(role_policy_dep),
    ) -> CallerIdentity:
        outcome = authorize(identity, policy.allowed_roles(operation))
        if isinstance(outcome, Failure):
            log.info("access_denied", operation=operation.value, role=identity.role.value)
            raise http_error(outcome.failure())
        return identity

    return _dep


# --- Module Notes -----------------------------------------------------------
# Routes declare `Depends(require(Operation.x))`; FastAPI caches `get_identity` per
# request, so verification runs once even when a route also asks for the identity.
