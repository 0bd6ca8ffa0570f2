"""Small asyncio helpers shared by the dashboard and cache layers."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from core.logger import get_logger

logger = get_logger("core.async_utils")

T = TypeVar("T")


async def request_with_timeout(awaitable: Awaitable[T], timeout: float) -> Optional[T]:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    Returns ``None`` when the other side never answers, so callers can fall
    back to an unauthenticated or default path instead of hanging.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Request timed out after %.2fs, falling back", timeout)
        return None
