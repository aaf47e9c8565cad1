"""
Periodic synchronization driver.

Cycles run strictly one after another in the calling thread, so at most one
cycle touches the jobs cache at any time. A failed cycle is retried with
exponential backoff; if it still fails, the error is logged and the loop
waits for the next interval.
"""

import time
from typing import Callable, List, Optional

from .differ import ChangeReport
from .logger import get_logger
from .retry import exponential_backoff, RetryError

logger = get_logger()


def run_periodically(
    service,
    interval: float,
    max_cycles: Optional[int] = None,
    max_retries: int = 2,
    retry_delay: float = 30.0,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Optional[ChangeReport]]:
    """
    Run ``service.synchronize_jobs()`` every ``interval`` seconds.

    Args:
        service: Object exposing synchronize_jobs()
        interval: Seconds to wait after a cycle before starting the next
        max_cycles: Stop after this many cycles (None = run forever)
        max_retries: Retries for a failed cycle before giving up on it
        retry_delay: Initial delay between retries
        sleep: Function used for every wait

    Returns:
        One entry per cycle: the ChangeReport, or None when the cycle failed
    """
    def on_retry(attempt, exc, delay):
        logger.warning(
            f"Synchronization attempt {attempt} failed, retrying in {delay:.0f}s",
            error=str(exc),
        )

    @exponential_backoff(
        max_retries=max_retries,
        base_delay=retry_delay,
        on_retry=on_retry,
        sleep=sleep,
    )
    def cycle() -> ChangeReport:
        return service.synchronize_jobs()

    reports: List[Optional[ChangeReport]] = []
    cycles = 0
    while max_cycles is None or cycles < max_cycles:
        cycles += 1
        try:
            reports.append(cycle())
        except RetryError as e:
            logger.error(f"Synchronization cycle {cycles} gave up: {e}")
            reports.append(None)

        if max_cycles is not None and cycles >= max_cycles:
            break
        sleep(interval)

    logger.log_metrics_summary()
    return reports
