"""
pos_backend.api.app

FastAPI app factory for the POS backend.

Responsibilities:
- Build the FastAPI application and register routers/middleware.
- Resolve the role policy once, failing fast on a bad configuration.
- Initialize and dispose shared infrastructure (DB engine/session factory, item locks).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pos_backend import __version__
from pos_backend.api.routers.auth import router as auth_router
from pos_backend.api.routers.categories import router as categories_router
from pos_backend.api.routers.health import router as health_router
from pos_backend.api.routers.items import router as items_router
from pos_backend.api.routers.orders import router as orders_router
from pos_backend.auth.policy import RolePolicy
from pos_backend.db.init_db import init_db
from pos_backend.db.session import create_engine, create_sessionmaker
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.observability.logging import configure_logging, get_logger
from pos_backend.observability.middleware import RequestContextMiddleware
from pos_backend.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)
    policy = RolePolicy.resolve(settings.role_policy_version, settings.role_policy_overrides)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env, role_policy=policy.version)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        try:
            yield
        finally:
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="POS and Inventory Management API",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.role_policy = policy
    # One registry per process: same-item stock operations serialize across requests.
    app.state.item_locks = ItemLockRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(categories_router)
    app.include_router(items_router)
    app.include_router(orders_router)

    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; business logic stays
# in services and the core packages (auth, inventory, orders).
