from __future__ import annotations

from typing import Any

from cot_tracker.common.errors import StorageError
from cot_tracker.store.base import SeriesStore, check_row_index


class InMemorySeriesStore(SeriesStore):
    """Series kept as lists of rows. Used for dry runs and tests."""

    def __init__(self):
        self.series: dict[str, list[list[Any]]] = {}
        self.formatted: list[tuple[str, int]] = []

    def _rows(self, name: str) -> list[list[Any]]:
        if name not in self.series:
            raise StorageError(f"series {name!r} does not exist")
        return self.series[name]

    def exists(self, name: str) -> bool:
        return name in self.series

    def create(self, name: str, headers: list[str]) -> None:
        if name in self.series:
            raise StorageError(f"series {name!r} already exists")
        self.series[name] = [list(headers)]

    def read_column(self, name: str, column: int) -> list[Any]:
        return [r[column - 1] if len(r) >= column else None for r in self._rows(name)]

    def write_row(self, name: str, row: int, values: list[Any]) -> None:
        rows = self._rows(name)
        check_row_index(name, row, len(rows))
        while len(rows) < row - 1:
            rows.append([])
        if row == len(rows) + 1:
            rows.append(list(values))
        else:
            rows[row - 1] = list(values)

    def last_row(self, name: str) -> int:
        return len(self._rows(name))

    def format_row(self, name: str, row: int) -> None:
        self.formatted.append((name, row))

    def data_rows(self, name: str) -> list[list[Any]]:
        return [list(r) for r in self._rows(name)[1:]]
