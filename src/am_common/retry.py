"""Optimistic-concurrency retry loop.

Listing writes are guarded by a version precondition. When the guard trips,
the whole read-validate-write sequence is re-run against fresh state.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from src.am_common.errors import ConcurrencyConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    label: str,
) -> T:
    """Run ``operation`` up to ``attempts`` times while it raises ConcurrencyConflictError.

    ``operation`` must roll back its own transaction before raising.
    The last conflict is re-raised unchanged.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except ConcurrencyConflictError:
            if attempt == attempts:
                logger.warning("%s: giving up after %d conflicting attempts", label, attempts)
                raise
            logger.warning("%s: version conflict on attempt %d, retrying", label, attempt)
    raise AssertionError("unreachable")
