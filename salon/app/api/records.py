"""Booking records API.

Creating a record is public and goes through the admission gate before the
body is validated. Editing and deleting records requires an admin session.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, ValidationError

from salon.app.api.dependencies import AdmissionGateDep, NotifierDep, RepositoryDep
from salon.app.core.logging import get_log_context, get_logger
from salon.app.exceptions import InvalidBookingError
from salon.app.middleware.auth import require_admin
from salon.app.middleware.rate_limit import get_client_ip
from salon.app.schemas import (
    AntiSpamPayload,
    CreateRecordData,
    Record,
    RecordStatus,
    UpdateRecordData,
)
from salon.app.services.anti_spam import SubmissionMetadata

router = APIRouter(prefix="/api/records", tags=["records"])
logger = get_logger(__name__)

REQUIRED_FIELDS = {"client_name", "phone", "service", "date"}
FIELD_ERRORS = {
    "amount": "Invalid amount value",
    "date": "Invalid date format",
    "time": "Invalid time format",
}


async def read_json_object(request: Request) -> dict[str, Any]:
    """Request body as a dict; anything else becomes an empty dict."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def extract_metadata(body: dict[str, Any]) -> Optional[SubmissionMetadata]:
    """Anti-spam metadata from the ``_antiSpam`` block, if the form sent one.

    A block that cannot be parsed counts as zero time and zero interactions,
    so it fails the heuristics.
    """
    raw = body.pop("_antiSpam", None)
    if raw is None:
        return None
    try:
        return AntiSpamPayload.model_validate(raw).to_metadata()
    except ValidationError:
        return SubmissionMetadata(time_spent_ms=0, interaction_count=0)


def validation_message(exc: ValidationError) -> str:
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else ""
        field = _snake(field)
        if field in REQUIRED_FIELDS and error["type"] in ("missing", "string_too_short"):
            return "Missing required fields"
    for error in exc.errors():
        field = _snake(str(error["loc"][0])) if error["loc"] else ""
        if field in FIELD_ERRORS:
            return FIELD_ERRORS[field]
    return "Invalid request body"


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def parse_body(model: type[BaseModel], body: dict[str, Any]) -> Any:
    try:
        return model.model_validate(body)
    except ValidationError as e:
        raise InvalidBookingError(validation_message(e)) from e


@router.get("", response_model=List[Record])
async def list_records(repository: RepositoryDep) -> List[Record]:
    """List all bookings."""
    return await repository.list_records()


@router.post("", response_model=Record, status_code=status.HTTP_201_CREATED)
async def create_record(
    request: Request,
    repository: RepositoryDep,
    gate: AdmissionGateDep,
    notifier: NotifierDep,
) -> Record:
    """Create a booking from the public form.

    The admission gate runs first; a rejected submission is never validated
    or stored.
    """
    body = await read_json_object(request)
    client_ip = get_client_ip(request)
    gate.admit(client_ip, extract_metadata(body))

    data = parse_body(CreateRecordData, body)
    record = await repository.add_record(data)
    logger.info(
        "Record created",
        extra=get_log_context(client_ip=client_ip, record_id=record.id),
    )

    notifier.notify_new_booking(record, during_vacation=data.during_vacation)
    return record


@router.put("/{record_id}", response_model=Record, dependencies=[Depends(require_admin)])
async def update_record(
    record_id: str,
    request: Request,
    repository: RepositoryDep,
    notifier: NotifierDep,
) -> Record:
    """Update a booking. A switch to ``confirmed`` texts the client."""
    data = parse_body(UpdateRecordData, await read_json_object(request))

    previous = next((r for r in await repository.list_records() if r.id == record_id), None)
    record = await repository.update_record(record_id, data)

    was_confirmed = previous is not None and previous.status == RecordStatus.CONFIRMED
    if record.status == RecordStatus.CONFIRMED and not was_confirmed:
        notifier.notify_confirmed(record)
    return record


@router.delete("/{record_id}", dependencies=[Depends(require_admin)])
async def delete_record(record_id: str, repository: RepositoryDep) -> dict[str, bool]:
    await repository.delete_record(record_id)
    logger.info("Record deleted", extra=get_log_context(record_id=record_id))
    return {"success": True}
