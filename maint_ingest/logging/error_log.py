from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import FILE_LEVEL_ROW, ErrorRecord

"""Diagnostic log buffering.

- JSON Lines with a fixed key set (see ``ErrorRecord``)
- One file per run: ``<log_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC), created
  on the first flush that has something to write
- Records are buffered and written in one go when the import finishes
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
    "FILE_LEVEL_ROW",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer of error records; ``flush()`` appends them as JSON Lines.

    Not thread safe: the pipeline runs one import at a time.
    """

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else LOGS_DIR
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.log_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records; returns the log path, or None when nothing was buffered."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
