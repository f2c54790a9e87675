"""Error taxonomy shared by the fetch, normalize and storage stages."""

from __future__ import annotations


class CotTrackerError(Exception):
    """Base class for tracker errors."""


class ConfigError(CotTrackerError):
    """Invalid or incomplete configuration. Fatal at startup."""


class FetchError(CotTrackerError):
    """Non-200 response, transport fault or undecodable payload from the reporting API."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NoDataAvailable(CotTrackerError):
    """The API answered 200 with an empty result set."""


class ParseError(CotTrackerError):
    """A report field could not be coerced. Always recovered locally with a default."""


class StorageError(CotTrackerError):
    """Fault while reading or writing an instrument series."""
