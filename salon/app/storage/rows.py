"""Conversion between spreadsheet rows and domain models.

Record rows have 13 columns (A-M):
``id, clientName, phone, socialMedia, service, date, time, comment, status,
source, amount, paymentMethod, createdAt``.

Purchase rows have 8 columns (A-H):
``id, categoryId, name, amount, date, description, supplier, createdAt``.

The Sheets API drops trailing empty cells, so short rows are padded before
decoding.
"""

import random
import string
import time
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

from salon.app.schemas import (
    PaymentMethod,
    Purchase,
    Record,
    RecordSource,
    RecordStatus,
)

RECORD_COLUMNS = 13
PURCHASE_COLUMNS = 8
FIRST_DATA_ROW = 2  # Row 1 holds the headers

_ID_ALPHABET = string.ascii_lowercase + string.digits


def _suffix(length: int = 9) -> str:
    return "".join(random.choices(_ID_ALPHABET, k=length))


def generate_record_id() -> str:
    return f"record-{int(time.time() * 1000)}-{_suffix()}"


def generate_purchase_id() -> str:
    return f"pur_{int(time.time() * 1000)}_{_suffix()}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _pad(row: Sequence[Any], width: int) -> list[Any]:
    padded = list(row) if isinstance(row, (list, tuple)) else []
    padded.extend([""] * (width - len(padded)))
    return padded


def _parse_amount(value: Any) -> Optional[float]:
    text = _cell(value)
    if not text:
        return None
    try:
        amount = float(text)
    except ValueError:
        return None
    if amount != amount or amount < 0:  # NaN or negative
        return None
    return amount


def _enum_or_default(enum_cls, value: Any, default):
    text = _cell(value).lower()
    try:
        return enum_cls(text)
    except ValueError:
        return default


def row_to_record(row: Sequence[Any], row_index: int) -> Record:
    """Decode one record row.

    ``row_index`` is the zero-based position in the data range; it is used to
    synthesize an id for rows that have none.
    """
    cells = _pad(row, RECORD_COLUMNS)
    fallback_id = f"row-{row_index + FIRST_DATA_ROW}"

    status = _enum_or_default(RecordStatus, cells[8] or "new", RecordStatus.NEW)
    source = _enum_or_default(RecordSource, cells[9] or "client", RecordSource.CLIENT)
    payment_method = _enum_or_default(PaymentMethod, cells[11], PaymentMethod.NONE)

    return Record(
        id=_cell(cells[0]) or fallback_id,
        client_name=_cell(cells[1]),
        phone=_cell(cells[2]),
        social_media=_cell(cells[3]),
        service=_cell(cells[4]),
        date=_cell(cells[5]),
        time=_cell(cells[6]),
        comment=_cell(cells[7]),
        status=status,
        source=source,
        amount=_parse_amount(cells[10]),
        payment_method=payment_method,
        created_at=_cell(cells[12]) or None,
    )


def record_has_data(record: Record) -> bool:
    """A row counts as a booking if any of the core fields is filled."""
    return bool(record.client_name or record.phone or record.service or record.date)


def record_to_row(record: Record) -> list[Any]:
    amount = ""
    if record.amount is not None and record.amount >= 0:
        amount = str(record.amount)

    return [
        record.id,
        record.client_name,
        record.phone,
        record.social_media,
        record.service,
        record.date,
        record.time,
        record.comment,
        record.status.value,
        record.source.value,
        amount,
        record.payment_method.value,
        record.created_at or "",
    ]


def rows_to_records(rows: Sequence[Sequence[Any]]) -> list[tuple[int, Record]]:
    """Decode a data range, skipping blank rows.

    Returns (sheet_row_number, record) pairs so callers can address the row
    they want to update or delete.
    """
    result = []
    for index, row in enumerate(rows):
        record = row_to_record(row, index)
        if record_has_data(record):
            result.append((index + FIRST_DATA_ROW, record))
    return result


def row_to_purchase(row: Sequence[Any]) -> Purchase:
    cells = _pad(row, PURCHASE_COLUMNS)
    return Purchase(
        id=_cell(cells[0]),
        category_id=_cell(cells[1]),
        name=_cell(cells[2]),
        amount=_parse_amount(cells[3]) or 0.0,
        date=_cell(cells[4]),
        description=_cell(cells[5]),
        supplier=_cell(cells[6]),
        created_at=_cell(cells[7]) or utc_now_iso(),
    )


def purchase_to_row(purchase: Purchase) -> list[Any]:
    return [
        purchase.id,
        purchase.category_id,
        purchase.name,
        purchase.amount,
        purchase.date,
        purchase.description,
        purchase.supplier,
        purchase.created_at or utc_now_iso(),
    ]
