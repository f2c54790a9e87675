from datetime import datetime, timedelta

import pytest

from cot_tracker.pipeline.scheduler import next_run_after, run_on_schedule


class _Clock:
    def __init__(self, start):
        self.t = start
        self.sleeps = []

    def now(self):
        return self.t

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.t = self.t + timedelta(seconds=seconds)


def test_next_run_after_daily_ten():
    assert next_run_after("0 10 * * *", datetime(2024, 1, 5, 9, 30)) == datetime(2024, 1, 5, 10, 0)
    assert next_run_after("0 10 * * *", datetime(2024, 1, 5, 10, 0)) == datetime(2024, 1, 6, 10, 0)


def test_invalid_cron_expression():
    with pytest.raises(ValueError):
        run_on_schedule(lambda: None, "not a cron", max_runs=1)


def test_runs_job_at_each_fire_time_and_survives_failures():
    clock = _Clock(datetime(2024, 1, 5, 9, 0))
    fired = []

    def job():
        fired.append(clock.now())
        if len(fired) == 1:
            raise RuntimeError("cycle failed")

    runs = run_on_schedule(job, "0 10 * * *", now=clock.now, sleep=clock.sleep, max_runs=2)

    assert runs == 2
    assert fired == [datetime(2024, 1, 5, 10, 0), datetime(2024, 1, 6, 10, 0)]
    assert clock.sleeps[0] == 3600
