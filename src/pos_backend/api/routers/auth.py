"""
pos_backend.api.routers.auth

Account endpoints: signup, login, profile, password change, user administration.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from returns.result import Failure
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from pos_backend.api.deps import db_session, settings_dep
from pos_backend.api.errors import http_error
from pos_backend.auth.deps import get_identity, jwt_cfg, require
from pos_backend.auth.models import CallerIdentity, Role
from pos_backend.auth.policy import Operation
from pos_backend.db.models import User
from pos_backend.services.account_service import AccountService
from pos_backend.settings import Settings

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)
    role: Role


class LoginRequest(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1)


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)


class RoleChangeRequest(BaseModel):
    role: Role


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    role: Role
    profile_image: str
    created_at: datetime

    @classmethod
    def from_row(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            profile_image=user.profile_image,
            created_at=user.created_at,
        )


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


def account_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> AccountService:
    return AccountService(
        session=session,
        jwt_cfg=jwt_cfg(settings),
        token_ttl=timedelta(minutes=settings.token_ttl_minutes),
    )


@router.post("/signup", response_model=UserResponse, status_code=HTTP_201_CREATED)
async def signup(body: SignupRequest, svc: AccountService = Depends(account_service)) -> UserResponse:
    outcome = await svc.signup(username=body.username, password=body.password, role=body.role)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return UserResponse.from_row(outcome.unwrap())


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    svc: AccountService = Depends(account_service),
    settings: Settings = Depends(settings_dep),
) -> LoginResponse:
    outcome = await svc.login(username=body.username, password=body.password)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    result = outcome.unwrap()
    return LoginResponse(
        access_token=result.token,
        expires_in=settings.token_ttl_minutes * 60,
        user=UserResponse.from_row(result.user),
    )


@router.get("/profile", response_model=UserResponse)
async def profile(
    identity: CallerIdentity = Depends(get_identity),
    svc: AccountService = Depends(account_service),
) -> UserResponse:
    outcome = await svc.get(identity.user_id)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return UserResponse.from_row(outcome.unwrap())


@router.put("/password")
async def change_password(
    body: PasswordChangeRequest,
    identity: CallerIdentity = Depends(get_identity),
    svc: AccountService = Depends(account_service),
) -> dict[str, str]:
    outcome = await svc.change_password(
        identity.user_id,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return {"message": "Password updated"}


@router.get(
    "/users",
    response_model=list[UserResponse],
    dependencies=[Depends(require(Operation.user_list))],
)
async def list_users(svc: AccountService = Depends(account_service)) -> list[UserResponse]:
    return [UserResponse.from_row(u) for u in await svc.list_users()]


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def set_user_role(
    user_id: uuid.UUID,
    body: RoleChangeRequest,
    identity: CallerIdentity = Depends(require(Operation.user_set_role)),
    svc: AccountService = Depends(account_service),
) -> UserResponse:
    outcome = await svc.set_role(user_id, body.role, actor=identity.username)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return UserResponse.from_row(outcome.unwrap())
