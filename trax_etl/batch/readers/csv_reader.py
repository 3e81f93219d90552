"""
CSV reader streaming rows keyed by normalized headers.
"""

import csv
from collections.abc import Iterator
from pathlib import Path

from trax_etl.core.normalization import normalize_headers


class CSVReader:
    """
    Streams a CSV export one row at a time.

    The first line is the header row; it is normalized on open (raising
    HeaderCollisionError on collisions). Columns with a blank header are
    dropped, blank lines are skipped, and short rows are padded with None.

    Usage:
        with CSVReader("raw_csv/slice/slice_trax.csv") as reader:
            for line_number, row in reader.rows():
                ...
    """

    def __init__(self, file_path: str | Path, delimiter: str = ",", encoding: str = "utf-8-sig"):
        """
        Initialize CSV reader.

        Args:
            file_path: Path to CSV file
            delimiter: Field delimiter
            encoding: File encoding; the default strips a UTF-8 BOM
        """
        self.file_path = Path(file_path)
        self.delimiter = delimiter
        self.encoding = encoding
        self.headers: list[str] = []
        self._file = None
        self._reader = None

    def open(self) -> "CSVReader":
        self._file = open(self.file_path, newline="", encoding=self.encoding)
        try:
            self._reader = csv.reader(self._file, delimiter=self.delimiter)
            raw_headers = next(self._reader, [])
            self.headers = normalize_headers(raw_headers)
        except BaseException:
            self.close()
            raise
        return self

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            self._reader = None

    def rows(self) -> Iterator[tuple[int, dict[str, str | None]]]:
        """
        Yield (line_number, row) for every non-blank data row.

        line_number is the physical line on which the row ends.
        """
        if self._reader is None:
            raise RuntimeError("Reader is not open. Use it as a context manager or call open().")

        columns = [(index, key) for index, key in enumerate(self.headers) if key]
        for cells in self._reader:
            if not any(cell.strip() for cell in cells):
                continue
            row = {
                key: cells[index] if index < len(cells) else None
                for index, key in columns
            }
            yield self._reader.line_num, row

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
