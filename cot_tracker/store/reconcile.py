from __future__ import annotations

import logging
from dataclasses import dataclass

from cot_tracker.common.dates import to_date_key
from cot_tracker.common.logging import get_logger
from cot_tracker.compute.derived import SERIES_HEADERS, DerivedMetrics, series_row
from cot_tracker.normalize.cot_record import CanonicalReportRecord
from cot_tracker.store.base import FIRST_DATA_ROW, SeriesStore

ACTION_APPENDED = "APPENDED"
ACTION_UPDATED = "UPDATED"
ACTION_ERROR = "ERROR"

DATE_COLUMN = 1


@dataclass(frozen=True)
class ReconcileResult:
    action: str
    report_date_key: str
    row: int | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.action != ACTION_ERROR


def find_report_row(store: SeriesStore, name: str, report_date_key: str) -> int | None:
    """Row holding `report_date_key` in the date column, header skipped. None if absent."""
    dates = store.read_column(name, DATE_COLUMN)
    for offset, cell in enumerate(dates[FIRST_DATA_ROW - 1:]):
        if to_date_key(cell) == report_date_key:
            return offset + FIRST_DATA_ROW
    return None


def reconcile_record(
    store: SeriesStore,
    instrument_name: str,
    record: CanonicalReportRecord,
    metrics: DerivedMetrics | None = None,
    logger: logging.Logger | None = None,
) -> ReconcileResult:
    """
    Upsert one report into an instrument's series, keyed by report date.

    An existing row for the same date is overwritten in place (last fetch
    wins); otherwise the record is appended after the last populated row.
    Store faults are logged and returned as an ERROR result.
    """
    log = get_logger(logger)
    key = record.report_date_key
    try:
        if not store.exists(instrument_name):
            store.create(instrument_name, SERIES_HEADERS)
            log.info(f"[reconcile] {instrument_name}: created series")

        values = series_row(record, metrics)
        existing = find_report_row(store, instrument_name, key)

        if existing is not None:
            row = existing
            action = ACTION_UPDATED
            log.info(f"[reconcile] {instrument_name}: report date {key} already at row {row}, updating")
        else:
            last = store.last_row(instrument_name)
            row = last + 1 if last > 0 else FIRST_DATA_ROW
            action = ACTION_APPENDED

        store.write_row(instrument_name, row, values)
        store.format_row(instrument_name, row)
        store.flush()
    except Exception as e:
        log.error(f"[reconcile] {instrument_name}: storage error for report date {key}: {e}")
        return ReconcileResult(action=ACTION_ERROR, report_date_key=key, error=str(e))

    if action == ACTION_APPENDED:
        log.info(f"[reconcile] {instrument_name}: added report date {key} at row {row}")
    return ReconcileResult(action=action, report_date_key=key, row=row)
