"""FastAPI dependencies for objects created in the application lifespan.

Usage:
    from salon.app.api.dependencies import RepositoryDep

    @router.get("/records")
    async def list_records(repository: RepositoryDep):
        return await repository.list_records()
"""

from typing import Annotated

from fastapi import Depends, Request

from salon.app.services.admission import AdmissionGate
from salon.app.services.notifications import NotificationDispatcher
from salon.app.services.sms import SmsSender
from salon.app.storage.base import Repository


def get_repository(request: Request) -> Repository:
    return request.app.state.repository


def get_admission_gate(request: Request) -> AdmissionGate:
    return request.app.state.admission_gate


def get_notifier(request: Request) -> NotificationDispatcher:
    return request.app.state.notifier


def get_sms_sender(request: Request) -> SmsSender:
    return request.app.state.sms_sender


RepositoryDep = Annotated[Repository, Depends(get_repository)]
AdmissionGateDep = Annotated[AdmissionGate, Depends(get_admission_gate)]
NotifierDep = Annotated[NotificationDispatcher, Depends(get_notifier)]
SmsSenderDep = Annotated[SmsSender, Depends(get_sms_sender)]

__all__ = ["RepositoryDep", "AdmissionGateDep", "NotifierDep", "SmsSenderDep"]
