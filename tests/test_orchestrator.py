from datetime import date

import pytest

from cot_tracker.ingest.cftc_client import CftcClient
from cot_tracker.pipeline.orchestrator import (
    STATUS_APPENDED,
    STATUS_ERROR,
    STATUS_FETCH_ERROR,
    STATUS_NO_DATA,
    STATUS_STORAGE_ERROR,
    STATUS_UPDATED,
    CotPipeline,
)
from cot_tracker.registry.instruments import InstrumentConfig, InstrumentRegistry
from cot_tracker.store.memory import InMemorySeriesStore

from conftest import FakeResponse, FakeSession, raw_report


def _pipeline(registry, responses, store=None, today=None):
    sleeps = []
    session = FakeSession(responses)
    pipeline = CotPipeline(
        registry=registry,
        client=CftcClient(session=session),
        store=store or InMemorySeriesStore(),
        request_delay_s=1.0,
        sleep=sleeps.append,
        today=today,
    )
    return pipeline, session, sleeps


def test_partial_fetch_failure_does_not_stop_cycle(four_markets):
    responses = [
        FakeResponse([raw_report(code="097741")]),
        FakeResponse(None, status_code=500, text="internal error"),
        FakeResponse([raw_report(code="13874V")]),
        FakeResponse([raw_report(code="099741")]),
    ]
    pipeline, session, sleeps = _pipeline(four_markets, responses)

    report = pipeline.run_cycle()

    statuses = {o.instrument: o.status for o in report.outcomes}
    assert statuses == {
        "JAPANESE YEN": STATUS_APPENDED,
        "GOLD": STATUS_FETCH_ERROR,
        "S&P 500": STATUS_APPENDED,
        "EUR": STATUS_APPENDED,
    }
    assert [c["params"]["cftc_contract_market_code"] for c in session.calls] == ["097741", "088691", "13874V", "099741"]
    assert set(pipeline.store.series) == {"JAPANESE YEN", "S&P 500", "EUR"}
    assert sleeps == [1.0, 1.0, 1.0]
    assert len(report.succeeded) == 3
    assert [o.instrument for o in report.failed] == ["GOLD"]


def test_no_data_is_skipped_without_creating_series(four_markets):
    registry = four_markets.only(["GOLD"])
    pipeline, _, sleeps = _pipeline(registry, [FakeResponse([])])

    report = pipeline.run_cycle()

    assert report.outcomes[0].status == STATUS_NO_DATA
    assert report.failed == []
    assert pipeline.store.series == {}
    assert sleeps == []


def test_unexpected_exception_is_contained(four_markets, monkeypatch):
    registry = four_markets.only(["GOLD", "EUR"])
    pipeline, _, _ = _pipeline(registry, [FakeResponse([raw_report()]), FakeResponse([raw_report(code="099741")])])

    calls = {"n": 0}
    real_sync = pipeline.sync_instrument

    def flaky(instrument):
        calls["n"] += 1
        if instrument.name == "GOLD":
            raise RuntimeError("boom")
        return real_sync(instrument)

    monkeypatch.setattr(pipeline, "sync_instrument", flaky)
    report = pipeline.run_cycle()

    assert [o.status for o in report.outcomes] == [STATUS_ERROR, STATUS_APPENDED]
    assert report.outcomes[0].message == "boom"
    assert calls["n"] == 2


def test_storage_error_is_reported_per_instrument(four_markets):
    class ReadOnlyStore(InMemorySeriesStore):
        def create(self, name, headers):
            if name == "GOLD":
                raise PermissionError("sheet is protected")
            super().create(name, headers)

    registry = four_markets.only(["GOLD", "EUR"])
    pipeline, _, _ = _pipeline(
        registry,
        [FakeResponse([raw_report()]), FakeResponse([raw_report(code="099741")])],
        store=ReadOnlyStore(),
    )

    report = pipeline.run_cycle()

    assert [o.status for o in report.outcomes] == [STATUS_STORAGE_ERROR, STATUS_APPENDED]
    assert "protected" in report.outcomes[0].message
    assert report.summary() == {STATUS_STORAGE_ERROR: 1, STATUS_APPENDED: 1}


def test_date_fallback_is_flagged_in_outcome():
    registry = InstrumentRegistry([InstrumentConfig("GOLD", "088691", "GOLD")])
    pipeline, _, _ = _pipeline(
        registry,
        [FakeResponse([raw_report(report_date="not-a-date")])],
        today=lambda: date(2024, 2, 2),
    )

    outcome = pipeline.run_cycle().outcomes[0]

    assert outcome.status == STATUS_APPENDED
    assert outcome.date_fallback is True
    assert outcome.report_date_key == "2024-02-02"
    assert "unparseable" in outcome.message


def test_end_to_end_gold_three_cycles():
    registry = InstrumentRegistry([InstrumentConfig("GOLD", "088691", "GOLD - COMMODITY EXCHANGE INC.")])
    store = InMemorySeriesStore()
    responses = [
        FakeResponse([raw_report(report_date="2024-01-05T00:00:00.000")]),
        FakeResponse([raw_report(report_date="2024-01-05T00:00:00.000")]),
        FakeResponse([raw_report(report_date="2024-01-12T00:00:00.000", nc_long="20", nc_short="5", oi="1500")]),
    ]
    pipeline, _, _ = _pipeline(registry, responses, store=store)

    first = pipeline.run_cycle().outcomes[0]
    assert first.status == STATUS_APPENDED
    rows = store.data_rows("GOLD")
    assert len(rows) == 1
    assert rows[0][6] == 6
    assert rows[0][8] == pytest.approx(0.006)
    snapshot = store.data_rows("GOLD")

    second = pipeline.run_cycle().outcomes[0]
    assert second.status == STATUS_UPDATED
    assert store.data_rows("GOLD") == snapshot

    third = pipeline.run_cycle().outcomes[0]
    assert third.status == STATUS_APPENDED
    rows = store.data_rows("GOLD")
    assert [r[0] for r in rows] == [date(2024, 1, 5), date(2024, 1, 12)]
    assert rows[1][6] == 15
    assert rows[1][8] == pytest.approx(0.01)
