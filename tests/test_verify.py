from cot_tracker.pipeline.verify import probe_code, search_contracts, verify_all, verify_instrument
from cot_tracker.registry.instruments import InstrumentConfig

from conftest import FakeResponse, raw_report


def test_verify_instrument_success(make_client):
    client, _ = make_client([FakeResponse([raw_report(nc_long="120000", nc_short="45000", oi="300000")])])
    result = verify_instrument(InstrumentConfig("GOLD", "088691", "GOLD"), client)
    assert result.ok
    assert result.record.report_date_key == "2024-01-05"
    assert result.record.non_commercial_long == 120000


def test_verify_all_reports_each_instrument(make_client, four_markets):
    client, session = make_client([
        FakeResponse([raw_report(code="097741")]),
        FakeResponse([]),
        FakeResponse(None, status_code=404, text="not found"),
        FakeResponse([raw_report(code="099741")]),
    ])
    sleeps = []

    results = verify_all(four_markets, client, delay_s=0.5, sleep=sleeps.append)

    assert [r.ok for r in results] == [True, False, False, True]
    assert results[1].message == "no data found"
    assert "HTTP 404" in results[2].message
    assert sleeps == [0.5, 0.5, 0.5]
    assert len(session.calls) == 4


def test_search_and_probe_swallow_fetch_errors(make_client):
    client, _ = make_client([FakeResponse(None, status_code=500, text="x"), FakeResponse(None, status_code=500, text="x")])
    assert search_contracts(client, "bitcoin") == []
    assert probe_code(client, "133741") == []


def test_probe_code_returns_rows(make_client):
    client, session = make_client([FakeResponse([raw_report(code="133741")])])
    rows = probe_code(client, "133741", limit=5)
    assert rows[0]["cftc_contract_market_code"] == "133741"
    assert session.calls[0]["params"]["$limit"] == 5
