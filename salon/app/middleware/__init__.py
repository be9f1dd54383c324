"""Middleware package for the salon service."""

from salon.app.middleware.auth import require_admin, require_cron_secret
from salon.app.middleware.rate_limit import InMemoryRateLimiter, RateLimitSweeper, get_client_ip
from salon.app.middleware.request_id import RequestIdMiddleware, get_request_id

__all__ = [
    "require_admin",
    "require_cron_secret",
    "InMemoryRateLimiter",
    "RateLimitSweeper",
    "get_client_ip",
    "RequestIdMiddleware",
    "get_request_id",
]
