"""Net positions and open-interest share for one canonical report."""

from __future__ import annotations

from dataclasses import dataclass

from cot_tracker.normalize.cot_record import CanonicalReportRecord

SERIES_HEADERS = [
    "Report Date",
    "Non-Commercial Long",
    "Non-Commercial Short",
    "Commercial Long",
    "Commercial Short",
    "Open Interest",
    "Net Non-Commercial",
    "Net Commercial",
    "Net Position %",
]


@dataclass(frozen=True)
class DerivedMetrics:
    net_non_commercial: int
    net_commercial: int
    net_position_pct: float


def compute_derived(record: CanonicalReportRecord) -> DerivedMetrics:
    net_nc = record.non_commercial_long - record.non_commercial_short
    net_comm = record.commercial_long - record.commercial_short
    # OI == 0 -> 0 rather than a division fault
    pct = net_nc / record.open_interest if record.open_interest else 0.0
    return DerivedMetrics(net_non_commercial=net_nc, net_commercial=net_comm, net_position_pct=pct)


def series_row(record: CanonicalReportRecord, metrics: DerivedMetrics | None = None) -> list:
    """Row values in SERIES_HEADERS order."""
    m = metrics or compute_derived(record)
    return [
        record.report_date,
        record.non_commercial_long,
        record.non_commercial_short,
        record.commercial_long,
        record.commercial_short,
        record.open_interest,
        m.net_non_commercial,
        m.net_commercial,
        m.net_position_pct,
    ]
