from __future__ import annotations

import io
from collections.abc import Sequence
from typing import Any

import pandas as pd

"""Single-sheet workbook serialization (openpyxl engine via pandas).

The first row of every workbook written here is the header list; data rows
follow in order. Missing keys become empty cells.
"""

__all__ = [
    "MAX_SHEET_NAME",
    "write_workbook",
]

MAX_SHEET_NAME = 31


def _column_order(rows: Sequence[dict[str, Any]], headers: Sequence[str] | None) -> list[str]:
    if headers is not None:
        return list(headers)
    ordered: list[str] = []
    seen: set[str] = set()
    for row in rows:
        for key in row:
            if key not in seen:
                seen.add(key)
                ordered.append(key)
    return ordered


def write_workbook(
    rows: Sequence[dict[str, Any]],
    headers: Sequence[str] | None = None,
    sheet_name: str = "Data",
) -> bytes:
    """Serialize ``rows`` to ``.xlsx`` bytes.

    Without ``headers`` the columns are the union of row keys in first-seen
    order. With ``headers`` and no rows the sheet holds the header row only.
    """
    columns = _column_order(rows, headers)
    df = pd.DataFrame(list(rows), columns=columns)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name[:MAX_SHEET_NAME] or "Data", index=False)
    return buffer.getvalue()
