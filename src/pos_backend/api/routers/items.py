"""
pos_backend.api.routers.items

Catalog endpoints.

Responsibilities:
- Public read of the available menu.
- Role-gated catalog writes (create/update/delete).
- Role-gated stock read and restock through the stock ledger.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from returns.result import Failure
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from pos_backend.api.deps import db_session, item_locks_dep, settings_dep
from pos_backend.api.errors import http_error
from pos_backend.auth.deps import require
from pos_backend.auth.models import CallerIdentity
from pos_backend.auth.policy import Operation
from pos_backend.db.models import Category, Item
from pos_backend.db.repositories.items import ItemRepo
from pos_backend.errors import ItemNotFound
from pos_backend.inventory.locks import ItemLockRegistry
from pos_backend.services.catalog_service import CatalogService
from pos_backend.settings import Settings

router = APIRouter(prefix="/items", tags=["catalog"])


class ItemCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=256)
    category: Category
    price: Decimal = Field(ge=0, max_digits=12, decimal_places=2)
    stock: int | None = Field(default=None, ge=0)
    description: str = Field(default="", max_length=4000)
    image_ref: str | None = Field(default=None, max_length=512)
    is_available: bool = True
    rating: float = Field(default=0.0, ge=0, le=5)


class ItemUpdateRequest(BaseModel):
    # Stock is intentionally absent: use POST /items/{id}/restock.
    name: str | None = Field(default=None, min_length=1, max_length=256)
    category: Category | None = None
    price: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    description: str | None = Field(default=None, max_length=4000)
    image_ref: str | None = Field(default=None, max_length=512)
    is_available: bool | None = None
    rating: float | None = Field(default=None, ge=0, le=5)


class RestockRequest(BaseModel):
    delta: int = Field(gt=0)


class StockResponse(BaseModel):
    item_id: uuid.UUID
    available_quantity: int


class ItemResponse(BaseModel):
    id: uuid.UUID
    name: str
    category: Category
    price: Decimal
    description: str
    image_ref: str | None
    is_available: bool
    rating: float
    available_quantity: int
    created_at: datetime

    @classmethod
    def from_row(cls, item: Item) -> ItemResponse:
        return cls(
            id=item.id,
            name=item.name,
            category=item.category,
            price=item.price,
            description=item.description,
            image_ref=item.image_ref,
            is_available=item.is_available,
            rating=item.rating,
            available_quantity=item.stock,
            created_at=item.created_at,
        )


def catalog_service(
    session: AsyncSession = Depends(db_session),
    locks: ItemLockRegistry = Depends(item_locks_dep),
) -> CatalogService:
    return CatalogService(session=session, locks=locks)


@router.get("", response_model=list[ItemResponse])
async def list_items(
    include_unavailable: bool = Query(default=False),
    best_rated: bool = Query(default=False),
    session: AsyncSession = Depends(db_session),
) -> list[ItemResponse]:
    items = await ItemRepo(session).list_all(
        only_available=not include_unavailable, best_rated=best_rated
    )
    return [ItemResponse.from_row(i) for i in items]


@router.get("/{item_id}", response_model=ItemResponse)
async def get_item(item_id: uuid.UUID, session: AsyncSession = Depends(db_session)) -> ItemResponse:
    item = await ItemRepo(session).get(item_id)
    if item is None:
        raise http_error(ItemNotFound(item_id=item_id))
    return ItemResponse.from_row(item)


@router.post("", response_model=ItemResponse, status_code=HTTP_201_CREATED)
async def create_item(
    body: ItemCreateRequest,
    identity: CallerIdentity = Depends(require(Operation.catalog_write)),
    svc: CatalogService = Depends(catalog_service),
    settings: Settings = Depends(settings_dep),
) -> ItemResponse:
    item = await svc.create_item(
        name=body.name,
        category=body.category,
        price=body.price,
        stock=body.stock if body.stock is not None else settings.default_item_stock,
        description=body.description,
        image_ref=body.image_ref,
        is_available=body.is_available,
        rating=body.rating,
        actor=identity.username,
    )
    return ItemResponse.from_row(item)


@router.put("/{item_id}", response_model=ItemResponse)
async def update_item(
    item_id: uuid.UUID,
    body: ItemUpdateRequest,
    identity: CallerIdentity = Depends(require(Operation.catalog_write)),
    svc: CatalogService = Depends(catalog_service),
) -> ItemResponse:
    # Explicit nulls only clear the image reference; other columns are non-nullable.
    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "image_ref"
    }
    outcome = await svc.update_item(item_id, changes, actor=identity.username)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return ItemResponse.from_row(outcome.unwrap())


@router.delete("/{item_id}")
async def delete_item(
    item_id: uuid.UUID,
    identity: CallerIdentity = Depends(require(Operation.catalog_write)),
    svc: CatalogService = Depends(catalog_service),
) -> dict[str, str]:
    outcome = await svc.delete_item(item_id, actor=identity.username)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return {"message": "Item deleted"}


@router.get(
    "/{item_id}/stock",
    response_model=StockResponse,
    dependencies=[Depends(require(Operation.stock_read))],
)
async def get_stock(
    item_id: uuid.UUID,
    svc: CatalogService = Depends(catalog_service),
) -> StockResponse:
    outcome = await svc.available(item_id)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return StockResponse(item_id=item_id, available_quantity=outcome.unwrap())


@router.post("/{item_id}/restock", response_model=StockResponse)
async def restock_item(
    item_id: uuid.UUID,
    body: RestockRequest,
    identity: CallerIdentity = Depends(require(Operation.stock_restock)),
    svc: CatalogService = Depends(catalog_service),
) -> StockResponse:
    outcome = await svc.restock(item_id, body.delta, actor=identity.username)
    if isinstance(outcome, Failure):
        raise http_error(outcome.failure())
    return StockResponse(item_id=item_id, available_quantity=outcome.unwrap())
