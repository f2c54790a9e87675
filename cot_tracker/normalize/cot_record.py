from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any

import pandas as pd

from cot_tracker.common.dates import parse_iso_date_prefix, today_local_date
from cot_tracker.common.errors import ParseError
from cot_tracker.common.logging import get_logger
from cot_tracker.ingest.cftc_client import CODE_FIELD, DATE_FIELD

# provider field -> canonical field
POSITION_FIELDS = {
    "noncomm_positions_long_all": "non_commercial_long",
    "noncomm_positions_short_all": "non_commercial_short",
    "comm_positions_long_all": "commercial_long",
    "comm_positions_short_all": "commercial_short",
    "open_interest_all": "open_interest",
}


@dataclass(frozen=True)
class CanonicalReportRecord:
    report_date: date
    report_date_key: str
    non_commercial_long: int
    non_commercial_short: int
    commercial_long: int
    commercial_short: int
    open_interest: int
    market_name: str = ""
    provider_code: str = ""
    date_fallback: bool = False
    parse_warnings: tuple[str, ...] = ()


def parse_count(value: Any) -> int:
    """
    Provider count as a non-negative int; missing values are 0.

    Raises ParseError for unparseable or negative values. Floats are truncated.
    """
    if value is None:
        return 0
    if isinstance(value, str):
        s = value.replace(",", "").strip()
        if s == "":
            return 0
    else:
        s = value

    try:
        v = pd.to_numeric(s, errors="coerce")
        if pd.isna(v):
            raise ParseError(f"not a number: {value!r}")
        v = int(v)
    except (TypeError, ValueError, OverflowError) as e:
        raise ParseError(f"not a number: {value!r}") from e
    if v < 0:
        raise ParseError(f"negative count: {value!r}")
    return v


def coerce_count(value: Any) -> tuple[int, str | None]:
    """(count, None), or (0, reason) when `parse_count` rejects the value."""
    try:
        return parse_count(value), None
    except ParseError as e:
        return 0, str(e)


def parse_report_date(value: Any) -> date:
    d = parse_iso_date_prefix(value)
    if d is None:
        raise ParseError(f"unparseable report date {value!r}")
    return d


def normalize_report(
    raw: dict[str, Any],
    display_name: str,
    today: date | None = None,
    logger: logging.Logger | None = None,
) -> CanonicalReportRecord:
    """
    Canonical record from one raw API row.

    Never raises on field content: bad counts become 0 and an unparseable
    report date falls back to `today` (run date) with `date_fallback` set, so
    the caller can tell a substituted date apart from a real one.
    """
    log = get_logger(logger)
    warnings: list[str] = []

    raw_date = raw.get(DATE_FIELD)
    date_fallback = False
    try:
        report_date = parse_report_date(raw_date)
    except ParseError as e:
        date_fallback = True
        report_date = today or today_local_date()
        warnings.append(f"{DATE_FIELD}: {e}, using run date {report_date.isoformat()}")
        log.warning(f"[normalize] {display_name}: {e} -> fallback {report_date}")

    counts = {}
    for provider_field, canonical_field in POSITION_FIELDS.items():
        v, warn = coerce_count(raw.get(provider_field))
        counts[canonical_field] = v
        if warn:
            warnings.append(f"{provider_field}: {warn}")
            log.warning(f"[normalize] {display_name}: {provider_field} {warn} -> 0")

    return CanonicalReportRecord(
        report_date=report_date,
        report_date_key=report_date.isoformat(),
        market_name=display_name,
        provider_code=str(raw.get(CODE_FIELD) or ""),
        date_fallback=date_fallback,
        parse_warnings=tuple(warnings),
        **counts,
    )
