import json
import logging

import pytest
import requests

from cot_tracker.ingest.cftc_client import CftcClient
from cot_tracker.registry.instruments import InstrumentConfig, InstrumentRegistry


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self._payload = payload
        self.status_code = status_code
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Replays queued responses (or raises queued exceptions) and records every call."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def raw_report(
    code="088691",
    report_date="2024-01-05T00:00:00.000",
    nc_long="10",
    nc_short="4",
    comm_long="50",
    comm_short="60",
    oi="1000",
):
    return {
        "market_and_exchange_names": "GOLD - COMMODITY EXCHANGE INC.",
        "cftc_contract_market_code": code,
        "report_date_as_yyyy_mm_dd": report_date,
        "noncomm_positions_long_all": nc_long,
        "noncomm_positions_short_all": nc_short,
        "comm_positions_long_all": comm_long,
        "comm_positions_short_all": comm_short,
        "open_interest_all": oi,
    }


@pytest.fixture
def make_client():
    def _make(responses):
        session = FakeSession(responses)
        client = CftcClient(session=session, timeout_s=5)
        return client, session

    return _make


@pytest.fixture
def four_markets():
    return InstrumentRegistry([
        InstrumentConfig("JAPANESE YEN", "097741", "JAPANESE YEN - CHICAGO MERCANTILE EXCHANGE"),
        InstrumentConfig("GOLD", "088691", "GOLD - COMMODITY EXCHANGE INC."),
        InstrumentConfig("S&P 500", "13874V", "S&P 500 - CHICAGO MERCANTILE EXCHANGE"),
        InstrumentConfig("EUR", "099741", "EURO FX - CHICAGO MERCANTILE EXCHANGE"),
    ])


@pytest.fixture
def quiet_logger():
    return logging.getLogger("cot_tracker.tests")


@pytest.fixture
def timeout_error():
    return requests.Timeout("read timed out")
