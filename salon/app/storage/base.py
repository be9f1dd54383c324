"""Repository abstraction over the spreadsheet used as a database.

Provides a pluggable backend with in-memory and Google Sheets
implementations.
"""

from abc import ABC, abstractmethod

from salon.app.schemas import (
    CreatePurchaseData,
    CreateRecordData,
    Purchase,
    Record,
    UpdateRecordData,
)
from salon.app.storage.rows import (
    generate_purchase_id,
    generate_record_id,
    utc_now_iso,
)


class Repository(ABC):
    """Abstract base class for storage backends.

    Lookups by id that find nothing raise ``NotFoundError``; backend failures
    raise ``StorageError``.
    """

    @abstractmethod
    async def list_records(self) -> list[Record]:
        pass

    @abstractmethod
    async def add_record(self, data: CreateRecordData) -> Record:
        pass

    @abstractmethod
    async def update_record(self, record_id: str, data: UpdateRecordData) -> Record:
        """Apply the fields set on ``data`` to an existing record.

        Amount and payment method are kept when the update omits them.
        """
        pass

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        pass

    @abstractmethod
    async def list_purchases(self) -> list[Purchase]:
        """All purchases, newest date first."""
        pass

    @abstractmethod
    async def add_purchase(self, data: CreatePurchaseData) -> Purchase:
        pass

    @abstractmethod
    async def update_purchase(self, purchase_id: str, data: CreatePurchaseData) -> Purchase:
        pass

    @abstractmethod
    async def delete_purchase(self, purchase_id: str) -> None:
        pass

    async def list_purchases_by_category(self, category_id: str) -> list[Purchase]:
        return [p for p in await self.list_purchases() if p.category_id == category_id]

    async def close(self) -> None:
        """Release backend resources."""


def new_record(data: CreateRecordData) -> Record:
    fields = data.model_dump(exclude={"during_vacation"})
    return Record(id=generate_record_id(), created_at=utc_now_iso(), **fields)


def merge_record(existing: Record, data: UpdateRecordData) -> Record:
    # An explicit null counts as "not provided", so amount and payment
    # method survive partial updates from the admin panel.
    changes = {
        key: value
        for key, value in data.model_dump(exclude_unset=True).items()
        if value is not None
    }
    return existing.model_copy(update=changes)


def new_purchase(data: CreatePurchaseData) -> Purchase:
    return Purchase(id=generate_purchase_id(), created_at=utc_now_iso(), **data.model_dump())


def sort_purchases(purchases: list[Purchase]) -> list[Purchase]:
    return sorted(purchases, key=lambda p: p.date, reverse=True)
