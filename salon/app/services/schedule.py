"""Working hours and vacation periods.

Hours are whole-hour booking slots: a day open 09:00-18:00 offers the slots
9 through 18 inclusive.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping, Optional

from salon.app.core.config import DEFAULT_WORKING_HOURS
from salon.app.core.logging import get_logger

logger = get_logger(__name__)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")

DAY_LABELS = {
    "ru": ("Пн", "Вт", "Ср", "Чт", "Пт", "Сб", "Вс"),
    "lv": ("Pr", "Ot", "Tr", "Ct", "Pt", "Se", "Sv"),
}
CLOSED_LABELS = {"ru": "Выходной", "lv": "Brīvdiena"}


@dataclass(frozen=True)
class DayHours:
    open: str
    close: str
    closed: bool = False


@dataclass(frozen=True)
class VacationPeriod:
    id: str
    start_date: date
    end_date: date
    note: str = ""

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "note": self.note,
        }


def load_working_hours(raw: Optional[Mapping[str, Mapping[str, Any]]] = None) -> dict[str, DayHours]:
    """Merge configured hours over the defaults, day by day."""
    merged: dict[str, DayHours] = {}
    raw = raw or {}
    for day in WEEKDAYS:
        values = {**DEFAULT_WORKING_HOURS[day], **(raw.get(day) or {})}
        merged[day] = DayHours(
            open=str(values["open"]),
            close=str(values["close"]),
            closed=bool(values.get("closed", False)),
        )
    return merged


def load_vacations(raw: Iterable[Mapping[str, Any]] = ()) -> list[VacationPeriod]:
    """Parse vacation entries; malformed ones are skipped with a warning."""
    periods = []
    for index, item in enumerate(raw):
        try:
            periods.append(
                VacationPeriod(
                    id=str(item.get("id") or f"vacation-{index + 1}"),
                    start_date=date.fromisoformat(item["startDate"]),
                    end_date=date.fromisoformat(item["endDate"]),
                    note=str(item.get("note") or ""),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[Vacation] Skipping invalid vacation period {item!r}: {e}")
    return periods


def _hour(value: str) -> int:
    return int(value.split(":")[0])


def available_hours_for_date(day: date, hours: Mapping[str, DayHours]) -> list[int]:
    day_hours = hours[WEEKDAYS[day.weekday()]]
    if day_hours.closed:
        return []
    return list(range(_hour(day_hours.open), _hour(day_hours.close) + 1))


def vacation_for_date(day: date, vacations: Iterable[VacationPeriod]) -> Optional[VacationPeriod]:
    for period in vacations:
        if period.contains(day):
            return period
    return None


def active_vacations(vacations: Iterable[VacationPeriod], today: Optional[date] = None) -> list[VacationPeriod]:
    today = today or date.today()
    return [v for v in vacations if v.contains(today)]


def format_working_hours(hours: Mapping[str, DayHours], language: str = "ru") -> str:
    labels = DAY_LABELS.get(language, DAY_LABELS["ru"])
    closed_label = CLOSED_LABELS.get(language, CLOSED_LABELS["ru"])
    lines = []
    for label, day in zip(labels, WEEKDAYS):
        day_hours = hours[day]
        if day_hours.closed:
            lines.append(f"{label}: {closed_label}")
        else:
            lines.append(f"{label}: {day_hours.open} - {day_hours.close}")
    return "\n".join(lines)
