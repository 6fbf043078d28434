from __future__ import annotations

import io
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..errors import EmptyFileError, InvalidFileTypeError
from ..models.row_data import CellValue, RawRow
from .dates import to_iso_timestamp

"""File intake: accepted types, first-sheet decoding, raw rows.

- Only ``.xlsx`` / ``.xls`` / ``.csv`` are accepted; the check happens before
  any byte is parsed.
- Only the first sheet is read. Row 0 is always the header row; every row
  below it becomes a ``RawRow`` keyed by the original header string.
- Columns with a blank header are dropped, rows whose cells are all empty are
  skipped.
- Cells come out as ``str | int | float | bool | None``: NaN becomes
  ``None``, whole floats become ``int`` (legacy ``.xls`` stores every number
  as float) and date cells become ISO timestamp strings.
"""

__all__ = [
    "ACCEPTED_EXTENSIONS",
    "ACCEPTED_MIME_TYPES",
    "SheetData",
    "detect_format",
    "read_first_sheet",
    "normalize_sheet",
    "read_upload",
]

ACCEPTED_EXTENSIONS: dict[str, str] = {
    ".xlsx": "xlsx",
    ".xls": "xls",
    ".csv": "csv",
}

ACCEPTED_MIME_TYPES: dict[str, str] = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "text/csv": "csv",
}

_EXCEL_ENGINES = {"xlsx": "openpyxl", "xls": "xlrd"}


@dataclass
class SheetData:
    sheet_name: str
    columns: list[str]  # original header strings, blank headers removed
    rows: list[RawRow]
    row_numbers: list[int] = field(default_factory=list)  # spreadsheet row per entry in rows


def detect_format(file_name: str, mime_type: str | None = None) -> str:
    """Return ``xlsx``, ``xls`` or ``csv`` for an upload.

    A supplied MIME type must be one of the accepted ones; browsers report
    ``application/vnd.ms-excel`` for CSV files on some platforms, so when
    both are present the extension picks the decoder.

    Raises:
        InvalidFileTypeError: extension or MIME type not accepted
    """
    suffix = Path(file_name).suffix.lower()
    by_extension = ACCEPTED_EXTENSIONS.get(suffix)
    if mime_type:
        by_mime = ACCEPTED_MIME_TYPES.get(mime_type.split(";")[0].strip().lower())
        if by_mime is None:
            raise InvalidFileTypeError(file_name, mime_type)
        return by_extension or by_mime
    if by_extension is None:
        raise InvalidFileTypeError(file_name)
    return by_extension


def _na_options(keep_na_strings: list[str] | None) -> dict[str, Any]:
    # pandas turns strings such as "NA" or "N/A" into NaN by default; drop the
    # ones the caller wants kept as text.
    if not keep_na_strings:
        return {"keep_default_na": True, "na_values": None}
    import pandas._libs.parsers as parsers

    custom_na = parsers.STR_NA_VALUES.copy() - set(keep_na_strings)
    return {"keep_default_na": False, "na_values": list(custom_na)}


def read_first_sheet(
    content: bytes, file_format: str, keep_na_strings: list[str] | None = None
) -> tuple[str, pd.DataFrame]:
    """Decode the first sheet of ``content`` without applying a header.

    Returns the sheet name (``Sheet1`` for CSV) and the raw DataFrame.
    """
    na = _na_options(keep_na_strings)
    buffer = io.BytesIO(content)
    if file_format == "csv":
        df = pd.read_csv(buffer, header=None, dtype=str, skip_blank_lines=True, **na)
        return "Sheet1", df
    xls = pd.ExcelFile(buffer, engine=_EXCEL_ENGINES[file_format])
    if not xls.sheet_names:
        return "Sheet1", pd.DataFrame()
    name = xls.sheet_names[0]
    df = xls.parse(name, header=None, dtype=object, **na)
    return str(name), df


def _coerce_cell(value: Any) -> CellValue:
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return to_iso_timestamp(value)
    if isinstance(value, date):
        return to_iso_timestamp(datetime(value.year, value.month, value.day))
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        if math.isnan(value):
            return None
        return int(value) if value.is_integer() else value
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return None if value.strip() == "" else value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return str(value)


def normalize_sheet(df: pd.DataFrame, sheet_name: str, file_name: str = "") -> SheetData:
    """Split a headerless DataFrame into header (row 0) and raw rows.

    Raises:
        EmptyFileError: no header row or no non-empty data row
    """
    if df.shape[0] < 1:
        raise EmptyFileError(file_name or sheet_name)
    header_cells = [_coerce_cell(v) for v in df.iloc[0].tolist()]
    kept: list[tuple[int, str]] = [
        (i, str(h).strip()) for i, h in enumerate(header_cells) if h is not None and str(h).strip()
    ]
    columns = [name for _, name in kept]

    rows: list[RawRow] = []
    row_numbers: list[int] = []
    for offset, raw in enumerate(df.iloc[1:].itertuples(index=False, name=None), start=2):
        row: RawRow = {name: _coerce_cell(raw[i]) for i, name in kept}
        if all(v is None for v in row.values()):
            continue
        rows.append(row)
        row_numbers.append(offset)

    if not rows:
        raise EmptyFileError(file_name or sheet_name)
    return SheetData(sheet_name=sheet_name, columns=columns, rows=rows, row_numbers=row_numbers)


def read_upload(
    source: Path | bytes,
    file_name: str | None = None,
    mime_type: str | None = None,
    keep_na_strings: list[str] | None = None,
) -> SheetData:
    """Validate, read and decode an uploaded spreadsheet.

    Parameters
    ----------
    source: path to the file, or its raw bytes
    file_name: name used for type detection (required with bytes)
    mime_type: optional MIME type reported by the uploader
    keep_na_strings: strings pandas must keep as text instead of empty cells
    """
    if isinstance(source, Path):
        name = file_name or source.name
        file_format = detect_format(name, mime_type)
        content = source.read_bytes()
    else:
        if not file_name:
            raise InvalidFileTypeError("<unnamed>", mime_type)
        name = file_name
        file_format = detect_format(name, mime_type)
        content = source
    if not content:
        raise EmptyFileError(name)
    sheet_name, df = read_first_sheet(content, file_format, keep_na_strings)
    return normalize_sheet(df, sheet_name, file_name=name)
