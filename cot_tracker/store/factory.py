from __future__ import annotations

from cot_tracker.common.config import StorageSettings
from cot_tracker.common.errors import ConfigError
from cot_tracker.store.base import SeriesStore
from cot_tracker.store.csv_store import CsvSeriesStore
from cot_tracker.store.memory import InMemorySeriesStore
from cot_tracker.store.xlsx_store import XlsxSeriesStore


def open_store(storage: StorageSettings) -> SeriesStore:
    if storage.backend == "xlsx":
        return XlsxSeriesStore(storage.path)
    if storage.backend == "csv":
        return CsvSeriesStore(storage.path)
    if storage.backend == "memory":
        return InMemorySeriesStore()
    raise ConfigError(f"Unknown storage backend: {storage.backend!r}")
