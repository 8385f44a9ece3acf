# backend/portfolio_engine/services/retry.py
"""
Bounded polling on top of tenacity.

poll_until() calls a check function until its result is complete or the
budget runs out, and always returns the last observed result together with
a completion flag. It never raises because the budget ran out; callers
decide whether a partial result is acceptable.

Budget:
    - max_attempts: total calls to the check function
    - delay: fixed wait between calls
    - deadline: optional ceiling in seconds from the first call; no wait
      starts that would end past it
    - cancel: optional threading.Event; setting it wakes a pending wait and
      no further attempt is made

Usage:
    result = poll_until(
        check=lambda: store.missing(symbols),
        is_complete=lambda missing: not missing,
        max_attempts=3,
        delay=1.0,
    )
    if not result.complete:
        logger.warning(f"Still missing after {result.attempts} attempts")
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from tenacity import (
    Retrying,
    RetryCallState,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    stop_any,
    wait_fixed,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PollResult(Generic[T]):
    """
    Outcome of a bounded poll.

    Attributes:
        value: Last value returned by the check function
        complete: Whether is_complete(value) held
        attempts: Number of check calls made
        elapsed: Seconds between the first call and the return
    """

    value: T
    complete: bool
    attempts: int
    elapsed: float


def poll_until(
        check: Callable[[], T],
        is_complete: Callable[[T], bool],
        max_attempts: int,
        delay: float,
        deadline: float | None = None,
        cancel: threading.Event | None = None,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
) -> PollResult[T]:
    """
    Call check() until is_complete(result) or the budget is exhausted.

    Args:
        check: Zero-argument function returning the current state
        is_complete: Predicate on the state
        max_attempts: Maximum calls to check (>= 1)
        delay: Seconds to wait between calls
        deadline: Optional ceiling in seconds, measured from the first call
        cancel: Optional event that stops further attempts when set
        sleep: Sleep function (tests pass a no-op). Defaults to cancel.wait
            when a cancel event is given, else time.sleep
        clock: Monotonic clock (tests pass a fake)

    Returns:
        PollResult with the last value

    Raises:
        ValueError: If max_attempts < 1
        Any exception raised by check() propagates unchanged
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    if sleep is None:
        sleep = cancel.wait if cancel is not None else time.sleep

    started = clock()
    attempts = 0
    last_value: T | None = None

    def _attempt() -> T:
        nonlocal attempts, last_value
        # A wait woken by cancel still returns to tenacity for one more call
        if attempts and cancel is not None and cancel.is_set():
            return last_value
        attempts += 1
        last_value = check()
        return last_value

    def _out_of_time(retry_state: RetryCallState) -> bool:
        if deadline is None:
            return False
        return clock() - started + delay > deadline

    def _cancelled(retry_state: RetryCallState) -> bool:
        return cancel is not None and cancel.is_set()

    retrying = Retrying(
        stop=stop_any(stop_after_attempt(max_attempts), _out_of_time, _cancelled),
        wait=wait_fixed(delay),
        retry=retry_if_result(lambda value: not is_complete(value)),
        sleep=sleep,
        before_sleep=before_sleep_log(logger, logging.DEBUG),
        retry_error_callback=lambda retry_state: retry_state.outcome.result(),
    )

    value = retrying(_attempt)
    complete = is_complete(value)
    elapsed = clock() - started

    logger.debug(f"Poll finished: complete={complete}, attempts={attempts}, elapsed={elapsed:.2f}s")
    return PollResult(value=value, complete=complete, attempts=attempts, elapsed=elapsed)
