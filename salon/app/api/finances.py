"""Admin financial summary."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from salon.app.api.dependencies import RepositoryDep
from salon.app.middleware.auth import require_admin
from salon.app.services.finances import build_financial_report

router = APIRouter(prefix="/api/finances", tags=["finances"], dependencies=[Depends(require_admin)])


@router.get("/summary")
async def financial_summary(
    repository: RepositoryDep,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
) -> dict[str, Any]:
    """Monthly income, tax, expenses and net income for the selected period.

    ``month`` is only applied together with ``year``.
    """
    records = await repository.list_records()
    purchases = await repository.list_purchases()
    return build_financial_report(records, purchases, year=year, month=month)
