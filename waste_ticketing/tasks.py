"""
This module provides helpers for awaiting external calls that may fail.

External collaborators (the classifier, the QR encoder) are awaited as tasks and
their results merged with a fallback value, so callers never see their errors.
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def resolve_with_fallback(awaitable: Awaitable[T], fallback: T, description: str) -> T:
    """
    Awaits an external result, substituting the fallback if it raises.

    Args:
        awaitable: The pending external call.
        fallback: The value to use when the call fails.
        description: What the call does, for the log message.

    Returns:
        The call's result, or the fallback.
    """
    try:
        return await awaitable
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.warning(f"{description} failed, using fallback value: {e}")
        return fallback


def run_blocking(func: Callable[..., T], *args, **kwargs) -> Awaitable[T]:
    """Runs a blocking collaborator call in a worker thread."""
    return asyncio.to_thread(func, *args, **kwargs)
