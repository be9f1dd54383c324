"""Core utilities for the salon application."""

from salon.app.core.config import settings
from salon.app.core.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_logger",
    "setup_logging",
]
