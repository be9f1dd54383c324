"""API endpoints package for the salon service."""

from salon.app.api.auth import router as auth_router
from salon.app.api.cron import router as cron_router
from salon.app.api.finances import router as finances_router
from salon.app.api.purchases import router as purchases_router
from salon.app.api.records import router as records_router
from salon.app.api.schedule import router as schedule_router

__all__ = [
    "auth_router",
    "cron_router",
    "finances_router",
    "purchases_router",
    "records_router",
    "schedule_router",
]
