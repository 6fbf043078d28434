from __future__ import annotations

from typing import Any

"""Error taxonomy for the spreadsheet ingestion pipeline.

Fatal errors derive from ``IngestError`` and abort the whole batch before
anything is written to the store. ``UnparseableDateWarning`` is the only
non-fatal condition: it is collected per cell, never raised by the pipeline.
"""

__all__ = [
    "IngestError",
    "InvalidFileTypeError",
    "EmptyFileError",
    "MissingColumnsError",
    "DuplicateRecordsError",
    "EmptyExportError",
    "UnparseableDateWarning",
    "ProcessingError",
]


class IngestError(Exception):
    """Base class for fatal import/export failures.

    ``error_type`` is the UPPER_SNAKE label written to the error log.
    """
    error_type = "INGEST_ERROR"


class InvalidFileTypeError(IngestError):
    """Raised before parsing when the extension/MIME type is not accepted."""
    error_type = "INVALID_FILE_TYPE"

    def __init__(self, file_name: str, mime_type: str | None = None) -> None:
        self.file_name = file_name
        self.mime_type = mime_type
        detail = f" ({mime_type})" if mime_type else ""
        super().__init__(
            f"Invalid file type for '{file_name}'{detail}. "
            "Please upload an Excel (.xlsx, .xls) or CSV file"
        )


class EmptyFileError(IngestError):
    """Raised when the first sheet has no data rows below the header."""
    error_type = "EMPTY_FILE"

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"No data found in file '{file_name}'")


class MissingColumnsError(IngestError):
    """Raised when required canonical headers have no matching sheet header.

    Every missing header is listed, not only the first one.
    """
    error_type = "MISSING_COLUMNS"

    def __init__(self, missing: list[str], required: list[str] | None = None) -> None:
        self.missing = list(missing)
        self.required = list(required) if required is not None else []
        message = f"Missing required columns: {', '.join(self.missing)}"
        if self.required:
            message += f". Required headers: {', '.join(self.required)}"
        super().__init__(message)


class DuplicateRecordsError(IngestError):
    """Raised in strict mode when composite keys collide."""
    error_type = "DUPLICATE_RECORDS"

    def __init__(self, duplicates: list[str]) -> None:
        self.duplicates = list(duplicates)
        super().__init__(f"Duplicate records found: {', '.join(self.duplicates)}")


class EmptyExportError(IngestError):
    """Raised when an export is requested on zero records. No file is produced."""
    error_type = "EMPTY_EXPORT"

    def __init__(self, what: str = "data") -> None:
        super().__init__(f"No {what} to export")


class UnparseableDateWarning(UserWarning):
    """A single cell could not be read as a date; the field becomes ``""``."""

    def __init__(self, value: Any, field: str | None = None, row: int | None = None) -> None:
        self.value = value
        self.field = field
        self.row = row
        where = []
        if row is not None:
            where.append(f"row {row}")
        if field:
            where.append(f"column {field}")
        location = f" ({', '.join(where)})" if where else ""
        super().__init__(f"Could not parse date value {value!r}{location}")

    def with_location(self, field: str | None, row: int | None) -> UnparseableDateWarning:
        return UnparseableDateWarning(self.value, field=field, row=row)


class ProcessingError(IngestError):
    """Raised when an accepted file cannot be decoded (corrupt or mislabeled workbook)."""
    error_type = "READ_ERROR"
