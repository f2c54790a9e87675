from __future__ import annotations

import re
import zipfile
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from cot_tracker.common.errors import StorageError
from cot_tracker.store.base import FIRST_DATA_ROW, SeriesStore, check_row_index

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", start_color="4A86E8", end_color="4A86E8")
ZEBRA_FILL = PatternFill(fill_type="solid", start_color="F3F3F3", end_color="F3F3F3")
COLUMN_WIDTH = 17  # ~120px

DATE_FORMAT = "yyyy-mm-dd"
COUNT_FORMAT = "#,##0"
PCT_FORMAT = "0.00%"

_BAD_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")


class XlsxSeriesStore(SeriesStore):
    """
    One worksheet per series in a single workbook.

    The workbook is loaded once and kept in memory. Mutations are written to
    disk by `flush`, which the reconciler calls once per upserted row.
    """

    def __init__(self, path: Path, columns: int = 9):
        self.path = Path(path)
        self.columns = columns
        self._wb: Workbook | None = None
        self._dirty = False

    @property
    def workbook(self) -> Workbook:
        if self._wb is None:
            if self.path.exists():
                try:
                    self._wb = load_workbook(self.path)
                except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError, ValueError) as e:
                    raise StorageError(f"cannot open workbook {self.path}: {e}") from e
            else:
                wb = Workbook()
                wb.remove(wb.active)
                self._wb = wb
        return self._wb

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.workbook.save(self.path)
        except OSError as e:
            raise StorageError(f"cannot save workbook {self.path}: {e}") from e
        self._dirty = False

    def _sheet(self, name: str) -> Worksheet:
        if name not in self.workbook.sheetnames:
            raise StorageError(f"series {name!r} does not exist in {self.path.name}")
        return self.workbook[name]

    def exists(self, name: str) -> bool:
        return name in self.workbook.sheetnames

    def create(self, name: str, headers: list[str]) -> None:
        if len(name) > 31 or _BAD_TITLE_CHARS.search(name):
            raise StorageError(f"{name!r} is not a valid worksheet title")
        if self.exists(name):
            raise StorageError(f"series {name!r} already exists")

        ws = self.workbook.create_sheet(title=name)
        if ws.title != name:
            # openpyxl renames titles that clash case-insensitively ("Gold" -> "Gold1")
            self.workbook.remove(ws)
            raise StorageError(f"series {name!r} clashes with an existing worksheet title")
        for col, header in enumerate(headers, start=1):
            c = ws.cell(row=1, column=col, value=header)
            c.font = HEADER_FONT
            c.fill = HEADER_FILL
            ws.column_dimensions[c.column_letter].width = COLUMN_WIDTH
        ws.freeze_panes = "A2"
        self._dirty = True

    def read_column(self, name: str, column: int) -> list[Any]:
        ws = self._sheet(name)
        last = self._last_row(ws)
        return [ws.cell(row=r, column=column).value for r in range(1, last + 1)]

    def write_row(self, name: str, row: int, values: list[Any]) -> None:
        ws = self._sheet(name)
        check_row_index(name, row, self._last_row(ws))
        for col, v in enumerate(values, start=1):
            ws.cell(row=row, column=col, value=v)
        self._dirty = True

    @staticmethod
    def _last_row(ws: Worksheet) -> int:
        # openpyxl reports max_row == 1 for an empty sheet
        if ws.max_row == 1 and all(c.value is None for c in ws[1]):
            return 0
        return ws.max_row

    def last_row(self, name: str) -> int:
        return self._last_row(self._sheet(name))

    def format_row(self, name: str, row: int) -> None:
        if row < FIRST_DATA_ROW:
            return
        ws = self._sheet(name)
        ws.cell(row=row, column=1).number_format = DATE_FORMAT
        for col in range(2, self.columns):
            ws.cell(row=row, column=col).number_format = COUNT_FORMAT
        ws.cell(row=row, column=self.columns).number_format = PCT_FORMAT
        if row % 2 == 0:
            for col in range(1, self.columns + 1):
                ws.cell(row=row, column=col).fill = ZEBRA_FILL
        self._dirty = True

    def flush(self) -> None:
        if self._dirty:
            self._save()
