"""Public schedule: working hours, vacations and free hours for a date."""

from datetime import date
from typing import Any

from fastapi import APIRouter

from salon.app.core.config import settings
from salon.app.exceptions import InvalidBookingError
from salon.app.services.schedule import (
    active_vacations,
    available_hours_for_date,
    format_working_hours,
    load_vacations,
    load_working_hours,
    vacation_for_date,
)

router = APIRouter(prefix="/api/schedule", tags=["schedule"])


@router.get("")
async def get_schedule(language: str = "ru") -> dict[str, Any]:
    hours = load_working_hours(settings.working_hours)
    vacations = load_vacations(settings.vacations)
    return {
        "workingHours": {
            day: {"open": h.open, "close": h.close, "closed": h.closed}
            for day, h in hours.items()
        },
        "summary": format_working_hours(hours, language),
        "activeVacations": [v.to_dict() for v in active_vacations(vacations)],
    }


@router.get("/{day}")
async def get_day_schedule(day: str) -> dict[str, Any]:
    """Bookable hours for ``day`` (YYYY-MM-DD) and the vacation covering it.

    Bookings during a vacation are still accepted; the form uses the flag to
    warn the client.
    """
    try:
        parsed = date.fromisoformat(day)
    except ValueError as e:
        raise InvalidBookingError("Invalid date format") from e

    vacation = vacation_for_date(parsed, load_vacations(settings.vacations))
    return {
        "date": parsed.isoformat(),
        "hours": available_hours_for_date(parsed, load_working_hours(settings.working_hours)),
        "duringVacation": vacation is not None,
        "vacation": vacation.to_dict() if vacation else None,
    }
