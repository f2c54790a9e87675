from __future__ import annotations

from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from cot_tracker.common.errors import StorageError
from cot_tracker.common.paths import series_file_stem
from cot_tracker.store.base import FIRST_DATA_ROW, SeriesStore, check_row_index


def _slug(name: str) -> str:
    s = series_file_stem(name)
    if not s:
        raise StorageError(f"cannot derive a file name from series name {name!r}")
    return s


def _cell(x: Any) -> str:
    if isinstance(x, datetime):
        return x.date().isoformat()
    if isinstance(x, date):
        return x.isoformat()
    if x is None:
        return ""
    return str(x)


class CsvSeriesStore(SeriesStore):
    """
    One CSV file per series under `directory`.

    Cells are kept as text on disk; every write rewrites the file through a
    temp file + replace so a crash never leaves a half-written series.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        return self.directory / f"{_slug(name)}.csv"

    def _load(self, name: str) -> pd.DataFrame:
        path = self.path_for(name)
        if not path.exists():
            raise StorageError(f"series {name!r} does not exist ({path})")
        try:
            return pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise StorageError(f"series {name!r}: cannot read {path}: {e}") from e

    def _save(self, name: str, df: pd.DataFrame) -> None:
        path = self.path_for(name)
        tmp = path.with_suffix(path.suffix + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(tmp, index=False)
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"series {name!r}: cannot write {path}: {e}") from e

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def create(self, name: str, headers: list[str]) -> None:
        if self.exists(name):
            raise StorageError(f"series {name!r} already exists")
        self._save(name, pd.DataFrame(columns=list(headers)))

    def read_column(self, name: str, column: int) -> list[Any]:
        df = self._load(name)
        if column < 1 or column > len(df.columns):
            raise StorageError(f"series {name!r}: column {column} out of range")
        return [df.columns[column - 1]] + df.iloc[:, column - 1].tolist()

    def write_row(self, name: str, row: int, values: list[Any]) -> None:
        df = self._load(name)
        check_row_index(name, row, len(df) + 1)
        if row < FIRST_DATA_ROW:
            raise StorageError(f"series {name!r}: refusing to overwrite header row")
        if len(values) != len(df.columns):
            raise StorageError(f"series {name!r}: expected {len(df.columns)} values, got {len(values)}")

        cells = [_cell(v) for v in values]
        idx = row - FIRST_DATA_ROW
        new_row = pd.DataFrame([cells], columns=df.columns)
        if df.empty:
            df = new_row
        elif idx == len(df):
            df = pd.concat([df, new_row], ignore_index=True)
        else:
            df.iloc[idx] = cells
        self._save(name, df)

    def last_row(self, name: str) -> int:
        if not self.exists(name):
            return 0
        return len(self._load(name)) + 1

    def load_series(self, name: str) -> pd.DataFrame:
        """Series with typed columns: first column as dates, the rest numeric."""
        df = self._load(name)
        if df.empty:
            return df
        out = df.copy()
        date_col = out.columns[0]
        out[date_col] = pd.to_datetime(out[date_col], errors="coerce").dt.date
        for col in out.columns[1:]:
            out[col] = pd.to_numeric(out[col], errors="coerce")
        return out
