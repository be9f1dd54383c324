"""Endpoints called by an external scheduler."""

from typing import Any

from fastapi import APIRouter, Depends

from salon.app.api.dependencies import RepositoryDep, SmsSenderDep
from salon.app.core.config import settings
from salon.app.middleware.auth import require_cron_secret
from salon.app.services.reminders import send_tomorrow_reminders

router = APIRouter(prefix="/api/cron", tags=["cron"], dependencies=[Depends(require_cron_secret)])


@router.get("/sms-reminders")
async def sms_reminders(repository: RepositoryDep, sms: SmsSenderDep) -> dict[str, Any]:
    """Text every confirmed client booked for tomorrow. Run once a day."""
    return await send_tomorrow_reminders(
        repository,
        sms,
        language=settings.sms_language,
        brand=settings.sms_brand,
    )
