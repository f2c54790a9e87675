from __future__ import annotations

import argparse
from pathlib import Path

from cot_tracker.common.config import load_settings
from cot_tracker.common.logging import setup_logging
from cot_tracker.common.paths import ProjectPaths
from cot_tracker.pipeline.orchestrator import build_pipeline
from cot_tracker.pipeline.scheduler import run_on_schedule


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Run the COT sync on a cron schedule")
    p.add_argument("--root", default=".", help="project root")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--cron", default=None, help="override pipeline.schedule (default daily 10:00)")
    p.add_argument("--run-now", action="store_true", help="run one cycle before waiting")
    args = p.parse_args(argv)

    logger = setup_logging(args.log_level)
    paths = ProjectPaths(Path(args.root).resolve())
    settings = load_settings(paths)
    pipeline = build_pipeline(settings, logger=logger)

    cron = args.cron or settings.pipeline.schedule
    logger.info(f"[schedule] markets={settings.registry.names} cron='{cron}'")
    if args.run_now:
        pipeline.run_cycle()

    try:
        run_on_schedule(pipeline.run_cycle, cron, logger=logger)
    except KeyboardInterrupt:
        logger.info("[schedule] stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
