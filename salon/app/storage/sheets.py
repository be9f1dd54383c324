"""Google Sheets backed repository.

Talks to the Sheets v4 REST API with a shared ``httpx.AsyncClient``.
Records live in the configured range (``Sheet1!A2:M`` by default), purchases
in a separate ``Purchases`` sheet.
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx

from salon.app.core.logging import get_logger
from salon.app.exceptions import NotConfiguredError, NotFoundError, StorageError
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
from salon.app.storage.google_auth import ServiceAccountTokenProvider
from salon.app.storage.rows import (
    FIRST_DATA_ROW,
    purchase_to_row,
    record_to_row,
    row_to_purchase,
    rows_to_records,
)

logger = get_logger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"


class GoogleSheetsRepository(Repository):
    def __init__(
        self,
        spreadsheet_id: str,
        token_provider: ServiceAccountTokenProvider,
        http_client: httpx.AsyncClient,
        records_range: str = "Sheet1!A2:M",
        purchases_sheet: str = "Purchases",
        base_url: str = SHEETS_API_URL,
    ):
        if not spreadsheet_id:
            raise NotConfiguredError("Google Sheets Spreadsheet ID not configured")
        self._spreadsheet_id = spreadsheet_id
        self._tokens = token_provider
        self._http = http_client
        self._records_range = records_range
        self._records_sheet = records_range.split("!")[0] or "Sheet1"
        self._purchases_sheet = purchases_sheet
        self._base_url = f"{base_url}/{spreadsheet_id}"

    # -- low level -------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        token = await self._tokens.get_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            response = await self._http.request(
                method, f"{self._base_url}{path}", headers=headers, **kwargs
            )
            if response.status_code == 401:
                self._tokens.invalidate()
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Sheets API {method} {path} failed with {e.response.status_code}: "
                f"{e.response.text[:200]}"
            )
            raise StorageError("Google Sheets request failed") from e
        except httpx.HTTPError as e:
            logger.error(f"Sheets API {method} {path} failed: {e}")
            raise StorageError("Google Sheets is unreachable") from e
        return response.json() if response.content else {}

    async def _get_values(self, cell_range: str) -> list[list[Any]]:
        data = await self._request(
            "GET",
            f"/values/{quote(cell_range, safe='')}",
            params={"valueRenderOption": "UNFORMATTED_VALUE", "majorDimension": "ROWS"},
        )
        return data.get("values", [])

    async def _append_row(self, cell_range: str, row: list[Any]) -> None:
        await self._request(
            "POST",
            f"/values/{quote(cell_range, safe='')}:append",
            params={"valueInputOption": "RAW"},
            json={"values": [row]},
        )

    async def _update_row(self, cell_range: str, row: list[Any]) -> None:
        await self._request(
            "PUT",
            f"/values/{quote(cell_range, safe='')}",
            params={"valueInputOption": "RAW"},
            json={"values": [row]},
        )

    async def _sheet_id(self, title: str) -> int:
        data = await self._request("GET", "", params={"fields": "sheets.properties"})
        for sheet in data.get("sheets", []):
            properties = sheet.get("properties", {})
            if properties.get("title") == title:
                sheet_id: Optional[int] = properties.get("sheetId")
                if sheet_id is not None:
                    return sheet_id
        raise StorageError(f'Sheet "{title}" not found')

    async def _delete_row(self, sheet_title: str, row_number: int) -> None:
        sheet_id = await self._sheet_id(sheet_title)
        start = row_number - 1  # API indexes are zero-based
        await self._request(
            "POST",
            ":batchUpdate",
            json={
                "requests": [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": sheet_id,
                                "dimension": "ROWS",
                                "startIndex": start,
                                "endIndex": start + 1,
                            }
                        }
                    }
                ]
            },
        )

    # -- records ---------------------------------------------------------

    async def _located_records(self) -> list[tuple[int, Record]]:
        return rows_to_records(await self._get_values(self._records_range))

    async def _locate_record(self, record_id: str) -> tuple[int, Record]:
        for row_number, record in await self._located_records():
            if record.id == record_id:
                return row_number, record
        raise NotFoundError(f"Record with id {record_id} not found")

    async def list_records(self) -> list[Record]:
        return [record for _, record in await self._located_records()]

    async def add_record(self, data: CreateRecordData) -> Record:
        record = new_record(data)
        await self._append_row(self._records_range, record_to_row(record))
        logger.info("Record added", extra={"record_id": record.id})
        return record

    async def update_record(self, record_id: str, data: UpdateRecordData) -> Record:
        row_number, existing = await self._locate_record(record_id)
        updated = merge_record(existing, data)
        await self._update_row(
            f"{self._records_sheet}!A{row_number}:M{row_number}", record_to_row(updated)
        )
        return updated

    async def delete_record(self, record_id: str) -> None:
        row_number, _ = await self._locate_record(record_id)
        await self._delete_row(self._records_sheet, row_number)
        logger.info("Record deleted", extra={"record_id": record_id})

    # -- purchases -------------------------------------------------------

    @property
    def _purchases_range(self) -> str:
        return f"{self._purchases_sheet}!A2:H"

    async def _locate_purchase(self, purchase_id: str) -> tuple[int, Purchase]:
        rows = await self._get_values(self._purchases_range)
        for index, row in enumerate(rows):
            if row and str(row[0]).strip() == purchase_id:
                return index + FIRST_DATA_ROW, row_to_purchase(row)
        raise NotFoundError("Purchase not found")

    async def list_purchases(self) -> list[Purchase]:
        rows = await self._get_values(self._purchases_range)
        return sort_purchases([row_to_purchase(row) for row in rows if row])

    async def add_purchase(self, data: CreatePurchaseData) -> Purchase:
        purchase = new_purchase(data)
        await self._append_row(f"{self._purchases_sheet}!A:H", purchase_to_row(purchase))
        return purchase

    async def update_purchase(self, purchase_id: str, data: CreatePurchaseData) -> Purchase:
        row_number, existing = await self._locate_purchase(purchase_id)
        updated = existing.model_copy(update=data.model_dump())
        await self._update_row(
            f"{self._purchases_sheet}!A{row_number}:H{row_number}", purchase_to_row(updated)
        )
        return updated

    async def delete_purchase(self, purchase_id: str) -> None:
        row_number, _ = await self._locate_purchase(purchase_id)
        await self._delete_row(self._purchases_sheet, row_number)
