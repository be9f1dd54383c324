"""In-memory repository for tests and local development."""

import asyncio

from salon.app.exceptions import NotFoundError
from salon.app.schemas import (
    CreatePurchaseData,
    CreateRecordData,
    Purchase,
    Record,
    UpdateRecordData,
)
from salon.app.storage.base import (
    Repository,
    merge_record,
    new_purchase,
    new_record,
    sort_purchases,
)


class InMemoryRepository(Repository):
    """Keeps records and purchases in insertion order, like sheet rows."""

    def __init__(self, records: list[Record] | None = None, purchases: list[Purchase] | None = None):
        self._records: list[Record] = list(records or [])
        self._purchases: list[Purchase] = list(purchases or [])
        self._lock = asyncio.Lock()

    def _record_index(self, record_id: str) -> int:
        for index, record in enumerate(self._records):
            if record.id == record_id:
                return index
        raise NotFoundError(f"Record with id {record_id} not found")

    def _purchase_index(self, purchase_id: str) -> int:
        for index, purchase in enumerate(self._purchases):
            if purchase.id == purchase_id:
                return index
        raise NotFoundError("Purchase not found")

    async def list_records(self) -> list[Record]:
        async with self._lock:
            return list(self._records)

    async def add_record(self, data: CreateRecordData) -> Record:
        record = new_record(data)
        async with self._lock:
            self._records.append(record)
        return record

    async def update_record(self, record_id: str, data: UpdateRecordData) -> Record:
        async with self._lock:
            index = self._record_index(record_id)
            updated = merge_record(self._records[index], data)
            self._records[index] = updated
        return updated

    async def delete_record(self, record_id: str) -> None:
        async with self._lock:
            del self._records[self._record_index(record_id)]

    async def list_purchases(self) -> list[Purchase]:
        async with self._lock:
            return sort_purchases(self._purchases)

    async def add_purchase(self, data: CreatePurchaseData) -> Purchase:
        purchase = new_purchase(data)
        async with self._lock:
            self._purchases.append(purchase)
        return purchase

    async def update_purchase(self, purchase_id: str, data: CreatePurchaseData) -> Purchase:
        async with self._lock:
            index = self._purchase_index(purchase_id)
            updated = self._purchases[index].model_copy(update=data.model_dump())
            self._purchases[index] = updated
        return updated

    async def delete_purchase(self, purchase_id: str) -> None:
        async with self._lock:
            del self._purchases[self._purchase_index(purchase_id)]
