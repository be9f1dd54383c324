"""Spreadsheet-backed persistence for records and purchases."""

from salon.app.storage.base import Repository
from salon.app.storage.memory import InMemoryRepository
from salon.app.storage.sheets import GoogleSheetsRepository

__all__ = [
    "Repository",
    "InMemoryRepository",
    "GoogleSheetsRepository",
]
