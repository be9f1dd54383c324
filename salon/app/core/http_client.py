"""Shared HTTP client for outbound calls (Google Sheets, Twilio).

The client is created in the application lifespan and closed on shutdown.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx

from salon.app.core.config import settings


def build_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.httpx_connect_timeout,
        read=settings.httpx_read_timeout,
        write=settings.httpx_write_timeout,
        pool=settings.httpx_pool_timeout,
    )


@asynccontextmanager
async def init_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Yield a pooled ``httpx.AsyncClient`` and close it on exit.

        @asynccontextmanager
        async def lifespan(app: FastAPI):
            async with init_http_client() as client:
                yield
    """
    client = httpx.AsyncClient(
        timeout=build_timeout(),
        limits=httpx.Limits(max_connections=20, max_keepalive_connections=5),
    )
    try:
        yield client
    finally:
        await client.aclose()
