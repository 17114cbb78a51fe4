"""Append-only tabular store behind the sheet endpoint (one CSV row per entry)."""

import csv
import pathlib
from typing import Union

import structlog

logger = structlog.get_logger()

COLUMNS = ["timestamp", "intent", "userType", "phone"]


class CsvSheetStore:
    """Appends rows to a CSV file, writing the header on first use."""

    def __init__(self, path: Union[str, pathlib.Path]):
        self.path = pathlib.Path(path)

    def append_row(self, row: list[str]) -> None:
        new_file = not self.path.exists() or self.path.stat().st_size == 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            if new_file:
                writer.writerow(COLUMNS)
            writer.writerow(row)
        logger.debug("sheet_row_appended", path=str(self.path))

    def rows(self) -> list[dict]:
        if not self.path.exists():
            return []
        with self.path.open(newline="", encoding="utf-8") as f:
            return list(csv.DictReader(f))
