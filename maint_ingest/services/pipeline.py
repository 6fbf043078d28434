from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pandas as pd

from ..config.loader import IngestConfig, default_config
from ..errors import EmptyFileError, IngestError, ProcessingError, UnparseableDateWarning
from ..excel.headers import HeaderMatch, normalize_row, validate_headers
from ..excel.reader import SheetData, read_upload
from ..logging.error_log import FILE_LEVEL_ROW, ErrorLogBuffer, ErrorRecord
from ..models.import_result import ImportResult
from ..models.records import DomainRecord, RecordKind
from ..store.repository import Repository
from .kinds import get_definition
from .progress import RowProgress
from .reconciler import reconcile
from .row_mapper import map_row

"""Import pipeline: intake -> header validation -> row mapping -> reconcile -> persist.

One parameterized pipeline serves every record kind; only the required
header set and the row mapper differ per kind.

Failure policy:
- fatal errors (``IngestError``) abort the batch before the repository is
  touched; nothing is merged or written
- unreadable dates degrade one field to ``""`` and are reported on the
  result, the batch still completes
"""

__all__ = [
    "MappedSheet",
    "map_sheet",
    "import_sheet",
    "import_file",
]

logger = logging.getLogger(__name__)


@dataclass
class MappedSheet:
    """Records mapped from one sheet plus the diagnostics raised on the way."""
    match: HeaderMatch
    records: list[DomainRecord]
    warnings: list[UnparseableDateWarning] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)


def map_sheet(kind: RecordKind, sheet: SheetData, *, derive_next_due: bool = False) -> MappedSheet:
    """Validate headers and map every row of ``sheet`` to a ``kind`` record.

    Raises:
        EmptyFileError: the sheet has no data rows
        MissingColumnsError: required headers missing (all of them listed)
    """
    if not sheet.rows:
        raise EmptyFileError(sheet.sheet_name)
    definition = get_definition(kind)
    match = validate_headers(sheet.columns, definition.required_headers)

    warnings: list[UnparseableDateWarning] = []

    def collect(warning: UnparseableDateWarning) -> None:
        logger.warning(str(warning))
        warnings.append(warning)

    row_numbers = sheet.row_numbers or list(range(2, len(sheet.rows) + 2))
    options = {"derive_next_due": derive_next_due} if kind is RecordKind.OCM else {}
    records: list[DomainRecord] = []
    with RowProgress(len(sheet.rows), description=f"Mapping {definition.label} rows") as progress:
        for raw, row_number in zip(sheet.rows, row_numbers, strict=True):
            normalized = normalize_row(raw, match)
            records.append(
                map_row(kind, normalized, row_number=row_number, on_unparseable=collect, **options)
            )
            progress.advance()
        progress.set_postfix(warnings=len(warnings))
    return MappedSheet(match=match, records=records, warnings=warnings)


def import_sheet(
    kind: RecordKind,
    sheet: SheetData,
    repository: Repository,
    *,
    file_name: str = "",
    strict_duplicates: bool = False,
    derive_next_due: bool = False,
    start_time: datetime | None = None,
) -> ImportResult:
    """Map an already decoded sheet and reconcile it into ``repository``."""
    start = start_time or datetime.now(UTC)
    mapped = map_sheet(kind, sheet, derive_next_due=derive_next_due)
    outcome = reconcile(repository, mapped.records, strict=strict_duplicates)
    end = datetime.now(UTC)
    logger.info(
        f"{get_definition(kind).label} import: {len(mapped)} records from "
        f"{file_name or sheet.sheet_name} ({outcome.created} new, {outcome.updated} updated)"
    )
    return ImportResult(
        kind=kind,
        file_name=file_name or sheet.sheet_name,
        mapped_rows=len(mapped),
        created=outcome.created,
        updated=outcome.updated,
        records=outcome.records,
        imported=mapped.records,
        start_time=start,
        end_time=end,
        warnings=mapped.warnings,
    )


def _record_warnings(
    error_log: ErrorLogBuffer, file_name: str, kind: RecordKind, warnings: Sequence[UnparseableDateWarning]
) -> None:
    for w in warnings:
        error_log.append(
            ErrorRecord.create(
                file=file_name,
                kind=kind.value,
                row=w.row if w.row is not None else FILE_LEVEL_ROW,
                error_type="UNPARSEABLE_DATE",
                message=str(w),
            )
        )


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning(f"failed writing error log: {e}")
        return
    if path is not None:
        logger.info(f"diagnostics written to {path}")


def import_file(
    source: Path | bytes,
    kind: RecordKind,
    repository: Repository,
    *,
    file_name: str | None = None,
    mime_type: str | None = None,
    config: IngestConfig | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Run the whole import path for one uploaded file.

    Args:
        source: path to the upload or its bytes
        kind: record kind the file holds
        repository: collection the batch is reconciled into
        file_name: name used for type detection (required with bytes)
        mime_type: MIME type reported by the uploader, if any
        config: options (strict duplicates, NA strings, next-date derivation)
        error_log: buffer receiving diagnostics; one under ``config.log_dir``
            is created and flushed when omitted

    Raises:
        IngestError: any fatal condition; the repository is left untouched
    """
    cfg = config or default_config()
    name = file_name or (source.name if isinstance(source, Path) else "<upload>")
    owns_log = error_log is None
    log = error_log if error_log is not None else ErrorLogBuffer(Path(cfg.log_dir))
    start = datetime.now(UTC)
    try:
        try:
            sheet = read_upload(source, file_name=file_name, mime_type=mime_type, keep_na_strings=cfg.keep_na_strings)
        except IngestError:
            raise
        except pd.errors.EmptyDataError as e:
            raise EmptyFileError(name) from e
        except Exception as e:
            raise ProcessingError(f"cannot read '{name}': {e}") from e

        result = import_sheet(
            kind,
            sheet,
            repository,
            file_name=name,
            strict_duplicates=cfg.strict_duplicates,
            derive_next_due=cfg.derive_next_due,
            start_time=start,
        )
        _record_warnings(log, name, kind, result.warnings)
        return result
    except IngestError as e:
        logger.error(f"import failed: {e}")
        log.append(ErrorRecord.create(name, kind.value, FILE_LEVEL_ROW, e.error_type, str(e)))
        raise
    finally:
        if owns_log:
            _flush(log)
