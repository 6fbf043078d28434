from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the diagnostic log.

One JSON Lines entry per degraded cell or fatal import failure. The key set
is fixed: ``timestamp, file, kind, row, error_type, message``.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL_ROW",
]

FILE_LEVEL_ROW = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured diagnostic record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: name of the imported file
        kind: record kind token (ppm, ocm, training)
        row: spreadsheet row number; -1 for file-level errors
        error_type: classification in UPPER_SNAKE_CASE
        message: human readable description
    """
    timestamp: str
    file: str
    kind: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, kind: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            kind=kind,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
