from __future__ import annotations

from typing import Union

"""Row shapes shared by intake, header normalization and row mapping.

A sheet row travels through the pipeline in two shapes:

- ``RawRow``: original header string -> cell value, as read from the sheet.
- ``NormalizedRow``: canonical header -> the same cell value.

Cell values are a small closed set: text, number, boolean or empty (``None``).
An empty cell is ``None``; the training mapper relies on that to tell a
missing machine entry from an explicit ``No``.
"""

__all__ = [
    "CellValue",
    "RawRow",
    "NormalizedRow",
]

CellValue = Union[str, int, float, bool, None]
RawRow = dict[str, CellValue]
NormalizedRow = dict[str, CellValue]
