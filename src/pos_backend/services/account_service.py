"""
pos_backend.services.account_service

Credential lifecycle: signup, login (token issuing), password and role changes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import timedelta

from returns.result import Failure, Result, Success
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_backend.auth.jwt import JwtConfig, issue_token
from pos_backend.auth.models import Role
from pos_backend.auth.passwords import hash_password, verify_password
from pos_backend.clock import Clock, utcnow
from pos_backend.db.models import User
from pos_backend.db.repositories.users import UserRepo
from pos_backend.errors import (
    AccountError,
    InvalidLogin,
    InvalidSignup,
    UsernameTaken,
    UserNotFound,
    WrongPassword,
)
from pos_backend.observability.logging import get_logger

log = get_logger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes.
MAX_PASSWORD_BYTES = 72


@dataclass(frozen=True, slots=True)
class LoginResult:
    token: str
    user: User


def _check_password(password: str) -> AccountError | None:
    if len(password) < MIN_PASSWORD_LENGTH:
        return InvalidSignup(reason=f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return InvalidSignup(reason=f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return None


class AccountService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        jwt_cfg: JwtConfig,
        token_ttl: timedelta,
        clock: Clock = utcnow,
    ) -> None:
        self._session = session
        self._users = UserRepo(session)
        self._jwt_cfg = jwt_cfg
        self._token_ttl = token_ttl
        self._clock = clock

    async def signup(self, *, username: str, password: str, role: Role) -> Result[User, AccountError]:
        username = username.strip()
        if len(username) < MIN_USERNAME_LENGTH:
            return Failure(
                InvalidSignup(reason=f"Username must be at least {MIN_USERNAME_LENGTH} characters")
            )
        weak = _check_password(password)
        if weak is not None:
            return Failure(weak)

        if await self._users.get_by_username(username) is not None:
            return Failure(UsernameTaken(username=username))

        try:
            user = await self._users.create(
                username=username, password_hash=hash_password(password), role=role
            )
            await self._session.commit()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same username.
            await self._session.rollback()
            return Failure(UsernameTaken(username=username))

        log.info("user_signed_up", user_id=str(user.id), username=username, role=role.value)
        return Success(user)

    async def login(self, *, username: str, password: str) -> Result[LoginResult, AccountError]:
        user = await self._users.get_by_username(username.strip())
        if user is None or not verify_password(password, user.password_hash):
            log.info("login_failed", username=username)
            return Failure(InvalidLogin())

        token = issue_token(
            cfg=self._jwt_cfg,
            user_id=user.id,
            username=user.username,
            role=user.role,
            ttl=self._token_ttl,
            clock=self._clock,
        )
        log.info("login_succeeded", user_id=str(user.id), role=user.role.value)
        return Success(LoginResult(token=token, user=user))

    async def get(self, user_id: uuid.UUID) -> Result[User, AccountError]:
        user = await self._users.get(user_id)
        if user is None:
            return Failure(UserNotFound(user_id=user_id))
        return Success(user)

    async def list_users(self) -> list[User]:
        return await self._users.list_all()

    async def change_password(
        self, user_id: uuid.UUID, *, current_password: str, new_password: str
    ) -> Result[None, AccountError]:
        user = await self._users.get(user_id)
        if user is None:
            return Failure(UserNotFound(user_id=user_id))
        if not verify_password(current_password, user.password_hash):
            return Failure(WrongPassword())
        weak = _check_password(new_password)
        if weak is not None:
            return Failure(weak)

        await self._users.set_password_hash(user_id, hash_password(new_password))
        await self._session.commit()
        log.info("password_changed", user_id=str(user_id))
        return Success(None)

    async def set_role(
        self, user_id: uuid.UUID, role: Role, *, actor: str
    ) -> Result[User, AccountError]:
        user = await self._users.set_role(user_id, role)
        if user is None:
            await self._session.rollback()
            return Failure(UserNotFound(user_id=user_id))
        await self._session.commit()
        # Tokens already issued keep their old role until they expire, unless the
        # deployment verifies identities against the store.
        log.info("user_role_changed", user_id=str(user_id), role=role.value, actor=actor)
        return Success(user)
