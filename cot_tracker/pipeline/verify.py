"""Connectivity checks and contract-code discovery against the reporting API."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from cot_tracker.common.errors import FetchError
from cot_tracker.common.logging import get_logger
from cot_tracker.compute.derived import compute_derived
from cot_tracker.ingest.cftc_client import DATE_FIELD, FETCH_OK, NAME_FIELD, CftcClient
from cot_tracker.normalize.cot_record import CanonicalReportRecord, normalize_report
from cot_tracker.registry.instruments import InstrumentConfig, InstrumentRegistry


@dataclass(frozen=True)
class VerifyResult:
    instrument: str
    provider_code: str
    ok: bool
    record: CanonicalReportRecord | None = None
    message: str = ""


def verify_instrument(
    instrument: InstrumentConfig,
    client: CftcClient,
    logger: logging.Logger | None = None,
) -> VerifyResult:
    log = get_logger(logger)
    log.info(f"[verify] {instrument.name}: code={instrument.provider_code} display={instrument.display_name}")

    fetched = client.fetch_latest(instrument.provider_code)
    if fetched.status != FETCH_OK:
        reason = fetched.error or "no data found"
        log.warning(f"[verify] FAILED {instrument.name}: {reason}")
        return VerifyResult(instrument.name, instrument.provider_code, ok=False, message=reason)

    record = normalize_report(fetched.raw, instrument.display_name, logger=log)
    m = compute_derived(record)
    log.info(f"[verify] SUCCESS {instrument.name}: report date {record.report_date_key}")
    log.info(f"  non-commercial long:  {record.non_commercial_long:,}")
    log.info(f"  non-commercial short: {record.non_commercial_short:,}")
    log.info(f"  commercial long:      {record.commercial_long:,}")
    log.info(f"  commercial short:     {record.commercial_short:,}")
    log.info(f"  open interest:        {record.open_interest:,}")
    log.info(f"  net non-commercial:   {m.net_non_commercial:,} ({m.net_position_pct:.2%} of OI)")
    return VerifyResult(instrument.name, instrument.provider_code, ok=True, record=record)


def verify_all(
    registry: InstrumentRegistry,
    client: CftcClient,
    delay_s: float = 0.5,
    sleep: Callable[[float], None] = time.sleep,
    logger: logging.Logger | None = None,
) -> list[VerifyResult]:
    log = get_logger(logger)
    log.info(f"[verify] verifying {len(registry)} contract codes")
    results = []
    instruments = list(registry)
    for i, instrument in enumerate(instruments):
        results.append(verify_instrument(instrument, client, logger=log))
        if i < len(instruments) - 1 and delay_s > 0:
            sleep(delay_s)

    bad = [r.instrument for r in results if not r.ok]
    log.info(f"[verify] done: ok={len(results) - len(bad)} failed={len(bad)} {bad if bad else ''}".rstrip())
    return results


def search_contracts(
    client: CftcClient,
    name_fragment: str,
    limit: int = 10,
    logger: logging.Logger | None = None,
) -> list[tuple[str, str]]:
    log = get_logger(logger)
    log.info(f"[verify] searching contracts containing: {name_fragment}")
    try:
        found = client.search_contracts(name_fragment, limit=limit)
    except FetchError as e:
        log.error(f"[verify] search error: {e}")
        return []

    if not found:
        log.info("[verify] no contracts found with that name")
    for market, code in found:
        log.info(f"  - {market} (code: {code})")
    return found


def probe_code(
    client: CftcClient,
    provider_code: str,
    limit: int = 5,
    logger: logging.Logger | None = None,
) -> list[dict]:
    """Recent reports for a code not yet in the registry; logs market name and report date."""
    log = get_logger(logger)
    try:
        rows = client.fetch_recent(provider_code, limit=limit)
    except FetchError as e:
        log.error(f"[verify] probe error for code {provider_code}: {e}")
        return []

    if not rows:
        log.info(f"[verify] code {provider_code}: not found in dataset {client.dataset}")
    for row in rows:
        log.info(f"  - {row.get(NAME_FIELD)} ({row.get(DATE_FIELD)})")
    return rows
