from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import requests

from cot_tracker.common.config import DEFAULT_BASE_URL, DEFAULT_DATASET
from cot_tracker.common.errors import FetchError, NoDataAvailable
from cot_tracker.common.logging import get_logger

CODE_FIELD = "cftc_contract_market_code"
DATE_FIELD = "report_date_as_yyyy_mm_dd"
NAME_FIELD = "market_and_exchange_names"

FETCH_OK = "OK"
FETCH_NOT_FOUND = "NOT_FOUND"
FETCH_ERROR = "ERROR"

BODY_SNIPPET_CHARS = 200


@dataclass(frozen=True)
class FetchResult:
    status: str
    provider_code: str
    raw: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.status == FETCH_OK


class CftcClient:
    """
    Thin client for the CFTC public reporting (Socrata) API.

    One GET per call, no caching and no retries: a failed call is reported
    back to the caller, which decides whether to carry on.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        dataset: str = DEFAULT_DATASET,
        timeout_s: float = 30.0,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.dataset = dataset
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.logger = get_logger(logger)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.dataset}.json"

    def _get_rows(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        try:
            r = self.session.get(self.endpoint, params=params, timeout=self.timeout_s)
        except requests.RequestException as e:
            raise FetchError(f"request failed: {e}") from e

        if r.status_code != 200:
            raise FetchError(f"HTTP {r.status_code}: {r.text[:BODY_SNIPPET_CHARS]}", status_code=r.status_code)

        try:
            data = r.json()
        except ValueError as e:
            raise FetchError(f"malformed JSON: {e}", status_code=r.status_code) from e

        if not isinstance(data, list) or not all(isinstance(row, dict) for row in data):
            raise FetchError(
                f"unexpected payload type {type(data).__name__} (expected array of objects)",
                status_code=r.status_code,
            )
        return data

    def latest_report(self, provider_code: str) -> dict[str, Any]:
        """Most recent raw report for one code. Raises FetchError or NoDataAvailable."""
        rows = self._get_rows({
            CODE_FIELD: provider_code,
            "$limit": 1,
            "$order": f"{DATE_FIELD} DESC",
        })
        if not rows:
            raise NoDataAvailable(f"no reports for code {provider_code}")
        return rows[0]

    def fetch_latest(self, provider_code: str) -> FetchResult:
        """`latest_report` folded into a FetchResult; never raises for API faults."""
        try:
            raw = self.latest_report(provider_code)
        except NoDataAvailable:
            self.logger.info(f"[fetch] code={provider_code} no data returned")
            return FetchResult(status=FETCH_NOT_FOUND, provider_code=provider_code, status_code=200)
        except FetchError as e:
            self.logger.warning(f"[fetch] code={provider_code} error: {e}")
            return FetchResult(
                status=FETCH_ERROR,
                provider_code=provider_code,
                status_code=e.status_code,
                error=str(e),
            )

        self.logger.debug(f"[fetch] code={provider_code} report_date={raw.get(DATE_FIELD)}")
        return FetchResult(status=FETCH_OK, provider_code=provider_code, raw=raw, status_code=200)

    def fetch_recent(self, provider_code: str, limit: int = 5) -> list[dict[str, Any]]:
        """Latest `limit` reports for a code, newest first. Raises FetchError."""
        return self._get_rows({
            CODE_FIELD: provider_code,
            "$limit": int(limit),
            "$order": f"{DATE_FIELD} DESC",
        })

    def search_contracts(self, name_fragment: str, limit: int = 10) -> list[tuple[str, str]]:
        """
        Contracts whose market name contains `name_fragment` (case-insensitive).

        Returns (market_and_exchange_names, cftc_contract_market_code) pairs,
        de-duplicated in first-seen order. Raises FetchError.
        """
        fragment = name_fragment.strip().upper().replace("'", "''")
        rows = self._get_rows({
            "$where": f"upper({NAME_FIELD}) like '%{fragment}%'",
            "$limit": int(limit),
        })
        out: list[tuple[str, str]] = []
        for row in rows:
            pair = (str(row.get(NAME_FIELD, "")), str(row.get(CODE_FIELD, "")))
            if pair not in out:
                out.append(pair)
        return out
