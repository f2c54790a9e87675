"""One sync cycle: fetch -> normalize -> derive -> reconcile, per instrument, sequentially."""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from cot_tracker.common.config import Settings
from cot_tracker.common.logging import get_logger
from cot_tracker.compute.derived import compute_derived
from cot_tracker.ingest.cftc_client import FETCH_NOT_FOUND, FETCH_OK, CftcClient
from cot_tracker.normalize.cot_record import normalize_report
from cot_tracker.registry.instruments import InstrumentConfig, InstrumentRegistry
from cot_tracker.store.base import SeriesStore
from cot_tracker.store.factory import open_store
from cot_tracker.store.reconcile import ACTION_ERROR, reconcile_record

STATUS_APPENDED = "APPENDED"
STATUS_UPDATED = "UPDATED"
STATUS_NO_DATA = "NO_DATA"
STATUS_FETCH_ERROR = "FETCH_ERROR"
STATUS_STORAGE_ERROR = "STORAGE_ERROR"
STATUS_ERROR = "ERROR"

SUCCESS_STATUSES = {STATUS_APPENDED, STATUS_UPDATED}


@dataclass(frozen=True)
class InstrumentOutcome:
    instrument: str
    status: str
    report_date_key: str = ""
    row: int | None = None
    message: str = ""
    date_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.status in SUCCESS_STATUSES


@dataclass
class CycleReport:
    outcomes: list[InstrumentOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[InstrumentOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[InstrumentOutcome]:
        return [o for o in self.outcomes if o.status in {STATUS_FETCH_ERROR, STATUS_STORAGE_ERROR, STATUS_ERROR}]

    def summary(self) -> dict[str, int]:
        return dict(Counter(o.status for o in self.outcomes))


class CotPipeline:
    """
    Sequential sync of every registered instrument.

    `run_cycle` takes no arguments so it can be handed straight to a
    scheduler. A failure for one instrument is recorded in its outcome and
    never stops the rest of the cycle.
    """

    def __init__(
        self,
        registry: InstrumentRegistry,
        client: CftcClient,
        store: SeriesStore,
        request_delay_s: float = 1.0,
        sleep: Callable[[float], None] | None = None,
        today: Callable[[], date] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.registry = registry
        self.client = client
        self.store = store
        self.request_delay_s = request_delay_s
        self.sleep = sleep or time.sleep
        self.today = today
        self.logger = get_logger(logger)

    def sync_instrument(self, instrument: InstrumentConfig) -> InstrumentOutcome:
        log = self.logger
        name = instrument.name
        log.info(f"[sync] processing {name} ({instrument.display_name}, code={instrument.provider_code})")

        fetched = self.client.fetch_latest(instrument.provider_code)
        if fetched.status == FETCH_NOT_FOUND:
            log.info(f"[sync] no data found for {name} (code={instrument.provider_code})")
            return InstrumentOutcome(name, STATUS_NO_DATA, message="empty result")
        if fetched.status != FETCH_OK:
            log.error(f"[sync] fetch failed for {name} (code={instrument.provider_code}): {fetched.error}")
            return InstrumentOutcome(name, STATUS_FETCH_ERROR, message=fetched.error)

        today = self.today() if self.today else None
        record = normalize_report(fetched.raw, instrument.display_name, today=today, logger=log)
        metrics = compute_derived(record)
        result = reconcile_record(self.store, name, record, metrics, logger=log)

        message = "; ".join(record.parse_warnings)
        if result.action == ACTION_ERROR:
            return InstrumentOutcome(
                name,
                STATUS_STORAGE_ERROR,
                report_date_key=record.report_date_key,
                message=result.error,
                date_fallback=record.date_fallback,
            )

        if record.date_fallback:
            log.warning(f"[sync] {name}: stored under run date {record.report_date_key} (report date unparseable)")
        log.info(f"[sync] {name} {result.action.lower()} report_date={result.report_date_key} row={result.row}")
        return InstrumentOutcome(
            name,
            result.action,
            report_date_key=result.report_date_key,
            row=result.row,
            message=message,
            date_fallback=record.date_fallback,
        )

    def run_cycle(self) -> CycleReport:
        report = CycleReport()
        instruments = list(self.registry)

        for i, instrument in enumerate(instruments):
            try:
                outcome = self.sync_instrument(instrument)
            except Exception as e:
                self.logger.exception(f"[sync] unexpected error for {instrument.name}: {e}")
                outcome = InstrumentOutcome(instrument.name, STATUS_ERROR, message=str(e))
            report.outcomes.append(outcome)

            if i < len(instruments) - 1 and self.request_delay_s > 0:
                self.sleep(self.request_delay_s)

        self.logger.info(
            f"[sync] cycle done: instruments={len(instruments)} ok={len(report.succeeded)} "
            f"failed={len(report.failed)} summary={report.summary()}"
        )
        return report


def build_pipeline(settings: Settings, store: SeriesStore | None = None, logger: logging.Logger | None = None) -> CotPipeline:
    client = CftcClient(
        base_url=settings.source.base_url,
        dataset=settings.source.dataset,
        timeout_s=settings.source.timeout_s,
        logger=logger,
    )
    return CotPipeline(
        registry=settings.registry,
        client=client,
        store=store if store is not None else open_store(settings.storage),
        request_delay_s=settings.pipeline.request_delay_s,
        logger=logger,
    )
