from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path

from cot_tracker.common.config import STORAGE_BACKENDS, load_settings
from cot_tracker.common.logging import setup_logging
from cot_tracker.common.paths import ProjectPaths
from cot_tracker.pipeline.orchestrator import build_pipeline


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Fetch the latest COT report per market and reconcile it into the series store")
    p.add_argument("--root", default=".", help="project root")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--backend", choices=STORAGE_BACKENDS, default=None, help="override storage.backend")
    p.add_argument("--market", action="append", default=[], help="only sync this market key (repeatable)")
    args = p.parse_args(argv)

    logger = setup_logging(args.log_level)
    paths = ProjectPaths(Path(args.root).resolve())
    settings = load_settings(paths)

    if args.backend and args.backend != settings.storage.backend:
        default_path = "data/series" if args.backend == "csv" else "data/series/cot_positions.xlsx"
        settings = replace(settings, storage=replace(settings.storage, backend=args.backend, path=paths.resolve(default_path)))
    if args.market:
        settings = replace(settings, registry=settings.registry.only(args.market))

    logger.info(f"[sync] markets={settings.registry.names} backend={settings.storage.backend} path={settings.storage.path}")
    report = build_pipeline(settings, logger=logger).run_cycle()

    for o in report.outcomes:
        flag = " (date fallback)" if o.date_fallback else ""
        logger.info(f"  {o.instrument}: {o.status} {o.report_date_key}{flag} {o.message}".rstrip())

    if report.outcomes and not report.succeeded and report.failed:
        logger.error("[sync] every market failed")
        return 1
    logger.info("[sync] DONE")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
