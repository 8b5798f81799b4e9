"""
pos_backend.api.routers.categories

Menu category endpoint.

Responsibilities:
- List the fixed set of catalog categories (public, no token required).
"""

from __future__ import annotations

from fastapi import APIRouter

from pos_backend.db.models import Category

router = APIRouter(prefix="/categories", tags=["catalog"])


@router.get("", response_model=list[str])
async def list_categories() -> list[str]:
    return [c.value for c in Category]


# --- Module Notes -----------------------------------------------------------
# Categories are a closed enum on `db.models.Item`; adding one is a schema change,
# not a catalog write.
