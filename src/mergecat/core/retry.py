"""Fixed-count, fixed-delay retry loop."""

from __future__ import annotations

import time
from collections.abc import Callable

from mergecat.core.log import Logger


def retry(
    retries: int,
    delay: float,
    attempt: Callable[[], bool],
    logger: Logger,
    on_failed: Callable[[], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Call attempt() once, then up to `retries` more times.

    Each retry is preceded by sleeping `delay` seconds. Stops at the
    first attempt that returns True. on_failed runs once when every
    attempt returned False.

    Returns:
        True if any attempt succeeded
    """
    if attempt():
        return True

    for run in range(1, retries + 1):
        logger.info(f"Retrying after {delay:g}s ({run}/{retries})")
        sleep(delay)
        if attempt():
            return True

    if on_failed:
        on_failed()
    return False
