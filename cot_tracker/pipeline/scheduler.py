from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Any, Callable

from croniter import croniter

from cot_tracker.common.logging import get_logger


def next_run_after(cron_expression: str, after: datetime) -> datetime:
    try:
        return croniter(cron_expression, after).get_next(datetime)
    except Exception as e:
        raise ValueError(f"Invalid cron expression: {cron_expression}") from e


def run_on_schedule(
    job: Callable[[], Any],
    cron_expression: str,
    now: Callable[[], datetime] = datetime.now,
    sleep: Callable[[float], None] = time.sleep,
    max_runs: int | None = None,
    logger: logging.Logger | None = None,
) -> int:
    """
    Block and call `job()` at every fire time of `cron_expression`.

    Runs are independent: an exception escaping one is logged and the loop
    waits for the next fire time. Returns the number of runs once
    `max_runs` is reached (runs forever when None).
    """
    log = get_logger(logger)
    next_run_after(cron_expression, now())  # validate before looping

    runs = 0
    while max_runs is None or runs < max_runs:
        current = now()
        fire_at = next_run_after(cron_expression, current)
        wait_s = max(0.0, (fire_at - current).total_seconds())
        log.info(f"[schedule] next run at {fire_at:%Y-%m-%d %H:%M:%S} (in {wait_s:.0f}s)")
        sleep(wait_s)

        try:
            job()
        except Exception as e:
            log.exception(f"[schedule] run failed: {e}")
        runs += 1

    return runs
