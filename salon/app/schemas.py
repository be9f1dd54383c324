"""Pydantic models for bookings, purchases and admin requests.

JSON uses camelCase field names (``clientName``, ``paymentMethod`` ...) to
stay compatible with the booking form and the admin panel.
"""

import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from salon.app.services.anti_spam import SubmissionMetadata

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_RE = re.compile(r"^\d{2}:\d{2}$")


class RecordStatus(str, Enum):
    NEW = "new"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class RecordSource(str, Enum):
    CLIENT = "client"
    MASTER = "master"


class PaymentMethod(str, Enum):
    NONE = ""
    CASH = "cash"
    CARD = "card"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_date(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not DATE_RE.match(value):
        raise ValueError("Invalid date format")
    return value


def _check_time(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if value and not TIME_RE.match(value):
        raise ValueError("Invalid time format")
    return value


class Record(CamelModel):
    """A booking, one spreadsheet row."""

    id: str
    client_name: str = ""
    phone: str = ""
    social_media: str = ""
    service: str = ""
    date: str = ""  # YYYY-MM-DD
    time: str = ""  # HH:MM
    comment: str = ""
    status: RecordStatus = RecordStatus.NEW
    source: RecordSource = RecordSource.CLIENT
    amount: Optional[float] = None
    payment_method: PaymentMethod = PaymentMethod.NONE
    created_at: Optional[str] = None


class CreateRecordData(CamelModel):
    """Fields accepted when creating a booking. Time is optional."""

    client_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    service: str = Field(min_length=1)
    date: str = Field(min_length=1)
    time: Optional[str] = ""
    social_media: str = ""
    comment: str = ""
    status: RecordStatus = RecordStatus.NEW
    source: RecordSource = RecordSource.CLIENT
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: PaymentMethod = PaymentMethod.NONE
    during_vacation: bool = False

    @field_validator("client_name", "phone", "service", mode="before")
    @classmethod
    def strip_required(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("date", "time", mode="before")
    @classmethod
    def blank_to_empty(cls, v):
        # null counts as not given
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        return _check_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)


class UpdateRecordData(CamelModel):
    """Partial update; only fields present in the request are applied."""

    client_name: Optional[str] = None
    phone: Optional[str] = None
    social_media: Optional[str] = None
    service: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    comment: Optional[str] = None
    status: Optional[RecordStatus] = None
    source: Optional[RecordSource] = None
    amount: Optional[float] = Field(default=None, ge=0)
    payment_method: Optional[PaymentMethod] = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_date(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _check_time(v)


class UserActivity(BaseModel):
    clicks: int = 0
    focuses: int = 0


class AntiSpamPayload(CamelModel):
    """The ``_antiSpam`` block the booking form attaches to a submission."""

    time_spent: float
    user_activity: UserActivity = Field(default_factory=UserActivity)

    def to_metadata(self) -> SubmissionMetadata:
        return SubmissionMetadata(
            time_spent_ms=self.time_spent,
            interaction_count=self.user_activity.clicks + self.user_activity.focuses,
        )


class Purchase(CamelModel):
    id: str
    category_id: str
    name: str
    amount: float
    date: str
    description: str = ""
    supplier: str = ""
    created_at: str = ""


class CreatePurchaseData(CamelModel):
    category_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    amount: float = Field(gt=0)
    date: str = Field(min_length=1)
    description: str = ""
    supplier: str = ""


class UpdatePurchaseData(CreatePurchaseData):
    """Purchases are always edited as a whole; every field is resent."""


class PurchaseCategory(CamelModel):
    id: str
    name: str
    name_ru: str
    name_lv: str
    description: str = ""
    order: int
    created_at: Optional[str] = None


# Default categories for a colorist
DEFAULT_PURCHASE_CATEGORIES: list[PurchaseCategory] = [
    PurchaseCategory(
        id="cat_default_1",
        name="Краски и химия",
        name_ru="Краски и химия",
        name_lv="Krāsas un ķīmija",
        description="Краски, осветлители, оксиды, тонеры",
        order=1,
    ),
    PurchaseCategory(
        id="cat_default_2",
        name="Инструменты для окрашивания",
        name_ru="Инструменты для окрашивания",
        name_lv="Krāsošanas instrumenti",
        description="Кисти, миски, расчёски, мерные стаканы",
        order=2,
    ),
    PurchaseCategory(
        id="cat_default_3",
        name="Защитные и расходные материалы",
        name_ru="Защитные и расходные материалы",
        name_lv="Aizsargmateriāli un izlietojamie materiāli",
        description="Перчатки, фольга, пеньюары, салфетки",
        order=3,
    ),
    PurchaseCategory(
        id="cat_default_4",
        name="Уход и восстановление",
        name_ru="Уход и восстановление",
        name_lv="Kopšana un atjaunošana",
        description="Маски, бальзамы, уход после окрашивания",
        order=4,
    ),
    PurchaseCategory(
        id="cat_default_5",
        name="Оборудование и организация",
        name_ru="Оборудование и организация",
        name_lv="Aprīkojums un organizācija",
        description="Органайзеры, таймеры, оборудование",
        order=5,
    ),
]


class LoginRequest(BaseModel):
    password: str = Field(min_length=1)
