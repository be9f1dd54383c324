"""Admin API for salon purchases (expenses)."""

from typing import List

from fastapi import APIRouter, Depends, Request, status

from salon.app.api.dependencies import RepositoryDep
from salon.app.api.records import parse_body, read_json_object
from salon.app.core.logging import get_logger
from salon.app.middleware.auth import require_admin
from salon.app.schemas import (
    DEFAULT_PURCHASE_CATEGORIES,
    CreatePurchaseData,
    Purchase,
    PurchaseCategory,
    UpdatePurchaseData,
)

router = APIRouter(prefix="/api/purchases", tags=["purchases"])
logger = get_logger(__name__)


@router.get("/categories", response_model=List[PurchaseCategory])
async def list_categories() -> List[PurchaseCategory]:
    return sorted(DEFAULT_PURCHASE_CATEGORIES, key=lambda c: c.order)


@router.get("", response_model=List[Purchase], dependencies=[Depends(require_admin)])
async def list_purchases(
    repository: RepositoryDep,
    category_id: str | None = None,
) -> List[Purchase]:
    """List purchases, newest first, optionally for one category."""
    if category_id:
        return await repository.list_purchases_by_category(category_id)
    return await repository.list_purchases()


@router.post(
    "",
    response_model=Purchase,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def create_purchase(request: Request, repository: RepositoryDep) -> Purchase:
    data = parse_body(CreatePurchaseData, await read_json_object(request))
    purchase = await repository.add_purchase(data)
    logger.info(f"Purchase created: {purchase.id} ({purchase.amount:.2f})")
    return purchase


@router.put("/{purchase_id}", response_model=Purchase, dependencies=[Depends(require_admin)])
async def update_purchase(purchase_id: str, request: Request, repository: RepositoryDep) -> Purchase:
    data = parse_body(UpdatePurchaseData, await read_json_object(request))
    return await repository.update_purchase(purchase_id, data)


@router.delete("/{purchase_id}", dependencies=[Depends(require_admin)])
async def delete_purchase(purchase_id: str, repository: RepositoryDep) -> dict[str, bool]:
    await repository.delete_purchase(purchase_id)
    return {"success": True}
