from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering.

Format:
    SUMMARY kind={kind} file={file} rows={mapped} created={created}
    updated={updated} total={total} warnings={warnings} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for one import.

    >>> from datetime import datetime, timezone
    >>> from maint_ingest.models.records import RecordKind
    >>> start = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
    >>> end = datetime(2025, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
    >>> result = ImportResult(
    ...     kind=RecordKind.PPM, file_name="ppm.xlsx", mapped_rows=3, created=2,
    ...     updated=1, records=[], imported=[], start_time=start, end_time=end,
    ... )
    >>> render_summary_line(result)
    'SUMMARY kind=ppm file=ppm.xlsx rows=3 created=2 updated=1 total=0 warnings=0 elapsed_sec=2'
    """
    return (
        f"SUMMARY kind={result.kind.value} "
        f"file={result.file_name} "
        f"rows={result.mapped_rows} "
        f"created={result.created} "
        f"updated={result.updated} "
        f"total={result.total_records} "
        f"warnings={len(result.warnings)} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
