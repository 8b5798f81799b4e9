"""
pos_backend.auth.verifier

Credential verification: bearer value -> `CallerIdentity`.

Responsibilities:
- Locate the token in the places clients are known to send it.
- Validate signature, claims and expiry; map every failure to a typed `AuthError`.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

from returns.result import Failure, Result, Success

from pos_backend.auth.jwt import JwtConfig, JwtValidationError, decode_claims
from pos_backend.auth.models import CallerIdentity, Role
from pos_backend.clock import Clock, utcnow
from pos_backend.errors import AuthError, ExpiredCredential, MalformedCredential, MissingCredential

_BEARER_PREFIX = "bearer "


def extract_bearer(
    authorization: str | None,
    *,
    access_token_header: str | None = None,
    query_token: str | None = None,
) -> str | None:
    # Precedence: Authorization header, then x-access-token, then ?token=.
    if authorization and authorization[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX:
        token = authorization[len(_BEARER_PREFIX) :].strip()
        if token:
            return token
    return access_token_header or query_token or None


class CredentialVerifier:
    def __init__(
        self,
        *,
        cfg: JwtConfig,
        clock: Clock = utcnow,
        leeway: timedelta = timedelta(0),
    ) -> None:
        self._cfg = cfg
        self._clock = clock
        self._leeway = leeway

    def verify(self, token: str | None) -> Result[CallerIdentity, AuthError]:
        if not token:
            return Failure(MissingCredential())

        try:
            claims = decode_claims(cfg=self._cfg, token=token)
        except JwtValidationError as e:
            return Failure(MalformedCredential(reason=str(e)))

        try:
            issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=UTC)
            expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=UTC)
            user_id = uuid.UUID(str(claims["userId"]))
            role = Role(claims["role"])
        except (TypeError, ValueError, OverflowError) as e:
            return Failure(MalformedCredential(reason=f"invalid claims: {e}"))

        if str(claims["sub"]) != str(user_id):
            return Failure(MalformedCredential(reason="subject does not match userId"))

        if self._clock() > expires_at + self._leeway:
            return Failure(ExpiredCredential(expired_at=expires_at))

        return Success(
            CallerIdentity(
                user_id=user_id,
                username=str(claims["username"]),
                role=role,
                issued_at=issued_at,
                expires_at=expires_at,
            )
        )


# --- Module Notes -----------------------------------------------------------
# The verifier never touches the user store; re-reading the user row is an optional
# policy applied in `auth.deps` (see Settings.verify_identity_against_store).
