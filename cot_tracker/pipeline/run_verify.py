from __future__ import annotations

import argparse
from pathlib import Path

from cot_tracker.common.config import load_settings
from cot_tracker.common.logging import setup_logging
from cot_tracker.common.paths import ProjectPaths
from cot_tracker.ingest.cftc_client import CftcClient
from cot_tracker.pipeline.verify import probe_code, search_contracts, verify_all


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Check configured contract codes against the CFTC API")
    p.add_argument("--root", default=".", help="project root")
    p.add_argument("--log-level", default="INFO")
    p.add_argument("--market", action="append", default=[], help="only verify this market key (repeatable)")
    p.add_argument("--search", default=None, help="search contracts by market name instead")
    p.add_argument("--probe", default=None, help="list recent reports for a contract code instead")
    p.add_argument("--limit", type=int, default=10)
    args = p.parse_args(argv)

    logger = setup_logging(args.log_level)
    paths = ProjectPaths(Path(args.root).resolve())
    settings = load_settings(paths)
    client = CftcClient(
        base_url=settings.source.base_url,
        dataset=settings.source.dataset,
        timeout_s=settings.source.timeout_s,
        logger=logger,
    )

    if args.search:
        return 0 if search_contracts(client, args.search, limit=args.limit, logger=logger) else 1
    if args.probe:
        return 0 if probe_code(client, args.probe, limit=args.limit, logger=logger) else 1

    registry = settings.registry.only(args.market) if args.market else settings.registry
    results = verify_all(registry, client, delay_s=settings.pipeline.verify_delay_s, logger=logger)
    return 0 if all(r.ok for r in results) else 1


if __name__ == "__main__":
    raise SystemExit(main())
