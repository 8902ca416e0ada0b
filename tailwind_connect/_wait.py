"""
Polling wait primitive.
"""
import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


async def wait_for_condition(
    predicate: Callable[[], bool],
    interval: float,
    timeout: Optional[float] = None,
) -> int:
    """
    Wait until ``predicate()`` returns true, checking every ``interval`` seconds.

    The predicate is checked once immediately, so a condition that already
    holds returns without sleeping. Cancelling the awaiting task stops the
    wait at the next tick.

    Args:
        predicate: Condition to poll
        interval: Seconds between checks
        timeout: Give up after this many seconds; None waits forever

    Returns:
        Number of checks made, including the successful one

    Raises:
        ValueError: If interval is not positive or timeout is negative
        TimeoutError: If the timeout expires first
    """
    if interval <= 0:
        raise ValueError(f"interval must be positive, got {interval}")
    if timeout is not None and timeout < 0:
        raise ValueError(f"timeout must not be negative, got {timeout}")

    loop = asyncio.get_running_loop()
    deadline = None if timeout is None else loop.time() + timeout
    checks = 0

    while True:
        checks += 1
        if predicate():
            return checks

        delay = interval
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise TimeoutError(f"Condition not met after {timeout}s ({checks} checks)")
            delay = min(interval, remaining)

        await asyncio.sleep(delay)
