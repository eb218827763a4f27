from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import discord

log = logging.getLogger("guildsmith.blueprint.safety")

T = TypeVar("T")

_TRANSIENT_STATUSES = {429, 500, 502, 503, 504}


async def nonfatal(label: str, awaitable: Awaitable[T], *, logger: Optional[logging.Logger] = None) -> Optional[T]:
    """Await a per-item operation; log and return ``None`` if it raises.

    Used for every unit of work whose failure must not abort its siblings
    (one role, one channel, one webhook, one message).
    """
    try:
        return await awaitable
    except Exception as e:
        (logger or log).warning("%s failed: %s: %s", label, type(e).__name__, e)
        return None


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, (discord.Forbidden, discord.NotFound)):
        return False
    if isinstance(error, discord.HTTPException):
        return error.status in _TRANSIENT_STATUSES
    return isinstance(error, asyncio.TimeoutError)


def _retry_delay(error: BaseException, default: float) -> float:
    retry_after = getattr(error, "retry_after", None)
    if retry_after is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None) or {}
        try:
            retry_after = float(headers.get("Retry-After", default))
        except (TypeError, ValueError):
            retry_after = default
    return min(float(retry_after), 30.0)


async def with_retry(operation: str, func: Callable[..., Awaitable[T]], *args: Any, delay: float = 1.0, **kwargs: Any) -> T:
    """Run a Discord call, retrying a transient failure at most once."""
    try:
        return await func(*args, **kwargs)
    except Exception as e:
        if not _is_transient(e):
            raise
        wait = _retry_delay(e, delay)
        log.info("%s hit a transient error (%s), retrying once in %.2fs", operation, e, wait)
        await asyncio.sleep(wait)
    return await func(*args, **kwargs)
