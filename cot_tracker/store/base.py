"""Row store seen by the reconciler: one named series per instrument, 1-based rows and columns."""

from __future__ import annotations

from typing import Any

from cot_tracker.common.errors import StorageError

HEADER_ROW = 1
FIRST_DATA_ROW = 2


class SeriesStore:
    """
    Spreadsheet-like store interface.

    Row 1 of a series is its header. `last_row` is the last populated row
    (0 for a series with no rows at all). Backends raise StorageError for
    faults; `format_row` is presentation only and may be a no-op. Backends
    that buffer writes persist them in `flush`.
    """

    def exists(self, name: str) -> bool:
        raise NotImplementedError

    def create(self, name: str, headers: list[str]) -> None:
        raise NotImplementedError

    def read_column(self, name: str, column: int) -> list[Any]:
        raise NotImplementedError

    def write_row(self, name: str, row: int, values: list[Any]) -> None:
        raise NotImplementedError

    def last_row(self, name: str) -> int:
        raise NotImplementedError

    def format_row(self, name: str, row: int) -> None:
        return None

    def flush(self) -> None:
        return None


def check_row_index(name: str, row: int, last_row: int) -> None:
    # overwrite an existing row or extend by one; an empty series may start at FIRST_DATA_ROW
    if row < HEADER_ROW or row > max(last_row, HEADER_ROW) + 1:
        raise StorageError(f"series {name!r}: row {row} out of range (last_row={last_row})")
