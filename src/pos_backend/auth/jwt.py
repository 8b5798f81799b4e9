"""
pos_backend.auth.jwt

JWT issuing and decoding helpers.

Responsibilities:
- Issue login tokens carrying `userId`, `username` and `role` claims.
- Decode tokens with strict signature and claim-presence checks.

Note:
- Expiry is deliberately not checked here; `auth.verifier` compares `exp` against an
  injected clock so verification stays a pure function of token + secret + clock.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from pos_backend.auth.models import Role
from pos_backend.clock import Clock, utcnow

REQUIRED_CLAIMS = ["exp", "iat", "iss", "aud", "sub", "userId", "username", "role"]


@dataclass(frozen=True, slots=True)
class JwtConfig:
    # Algorithm/issuer/audience are enforced during decoding.
    alg: str
    issuer: str
    audience: str
    secret: str


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    user_id: uuid.UUID,
    username: str,
    role: Role,
    ttl: timedelta = timedelta(hours=8),
    clock: Clock = utcnow,
) -> str:
    now: datetime = clock()
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": str(user_id),
        "userId": str(user_id),
        "username": username,
        "role": role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_claims(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": REQUIRED_CLAIMS,
                "verify_exp": False,
                "verify_iat": False,
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# Token issuing is used by `services.account_service.AccountService.login`.
