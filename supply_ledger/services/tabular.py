"""
Decode uploaded spreadsheet files into rows keyed by column label.

The first non-empty row is the header. Every following row becomes a dict
of header label -> raw cell value (None for empty cells); completely empty
rows are dropped. Values are NOT normalized here: dates may come back as
datetime, serial numbers or strings, and the ledger importer deals with it.
"""

import csv
import io
from pathlib import PurePath
from typing import Any, Iterable, Optional

import structlog
from openpyxl import load_workbook

logger = structlog.get_logger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv"}


class TableDecodeError(Exception):
    """The uploaded file could not be read as a table."""
    pass


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _header_labels(cells: Iterable[Any]) -> list[str]:
    """Header labels, with unnamed columns numbered and duplicates suffixed."""
    labels: list[str] = []
    seen: dict[str, int] = {}
    for index, cell in enumerate(cells):
        label = str(cell).strip() if not _is_blank(cell) else f"Column{index + 1}"
        if label in seen:
            seen[label] += 1
            label = f"{label}_{seen[label]}"
        else:
            seen[label] = 0
        labels.append(label)
    return labels


def rows_to_records(rows: Iterable[Iterable[Any]]) -> list[dict[str, Any]]:
    """
    Turn raw grid rows into header-keyed records.

    Leading blank rows are skipped; the first non-blank row is the header.
    """
    header: Optional[list[str]] = None
    records = []

    for row in rows:
        cells = list(row)
        if all(_is_blank(cell) for cell in cells):
            continue
        if header is None:
            header = _header_labels(cells)
            continue

        record = {}
        for index, label in enumerate(header):
            value = cells[index] if index < len(cells) else None
            record[label] = None if _is_blank(value) else value
        records.append(record)

    return records


def decode_table(content: bytes, filename: str) -> list[dict[str, Any]]:
    """
    Decode an uploaded .xlsx/.xlsm/.csv file.

    Args:
        content: Raw file bytes
        filename: Original filename (the suffix selects the decoder)

    Returns:
        One dict per data row, keyed by header label

    Raises:
        TableDecodeError: Unsupported suffix or unreadable content
    """
    suffix = PurePath(filename).suffix.lower()

    if suffix in EXCEL_SUFFIXES:
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except Exception as e:
            raise TableDecodeError(f"Could not open workbook {filename}: {e}") from e
        try:
            sheet = workbook.worksheets[0]
            records = rows_to_records(sheet.iter_rows(values_only=True))
        finally:
            workbook.close()

    elif suffix in CSV_SUFFIXES:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise TableDecodeError(f"{filename} is not UTF-8 text: {e}") from e
        records = rows_to_records(csv.reader(io.StringIO(text)))

    else:
        raise TableDecodeError(
            f"Unsupported file type '{suffix or filename}'. Upload .xlsx, .xlsm or .csv"
        )

    logger.debug("table_decoded", filename=filename, rows=len(records))
    return records
