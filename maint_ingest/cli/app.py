from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, IngestConfig, default_config, load_config
from ..errors import IngestError
from ..excel.reader import read_upload
from ..logging.init import log_summary, set_debug, setup_logging
from ..models.records import OCMRecord, PPMRecord, RecordKind, TrainingRecord
from ..services.exporter import (
    blank_template,
    export_records,
    export_rows,
    format_ocm_for_view,
    format_ppm_for_view,
    format_training_for_export,
    sample_template,
)
from ..services.pipeline import import_file
from ..services.summary import render_summary_line
from ..store.blob_store import StoreError
from ..store.factory import open_store, repository_for

"""Command line front end.

    python -m maint_ingest.cli [--config PATH] [--debug] import --kind ppm FILE
    python -m maint_ingest.cli template --kind training [--blank] [--out DIR]
    python -m maint_ingest.cli export --kind ocm [--base-name NAME] [--view] [--out DIR]
    python -m maint_ingest.cli inspect FILE

Exit codes: 0 success, 2 import finished with date warnings, 1 fatal.
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_WITH_WARNINGS = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so database settings in it win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _kind(text: str) -> RecordKind:
    try:
        return RecordKind.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="maint_ingest", description="Maintenance spreadsheet import/export")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import a spreadsheet into the stored collection")
    imp.add_argument("--kind", type=_kind, required=True, help="ppm | ocm | training")
    imp.add_argument("--mime-type", default=None, help="MIME type reported by the uploader")
    imp.add_argument("file", type=Path)

    tpl = sub.add_parser("template", help="Write a template workbook")
    tpl.add_argument("--kind", type=_kind, required=True)
    tpl.add_argument("--blank", action="store_true", help="Headers only, no sample rows")
    tpl.add_argument("--sample-data-name", action="store_true", help="Name the file {Kind}_Sample_Data.xlsx")
    tpl.add_argument("--out", type=Path, default=Path("."))

    exp = sub.add_parser("export", help="Export the stored collection")
    exp.add_argument("--kind", type=_kind, required=True)
    exp.add_argument("--base-name", default=None, help="File name prefix (default: {kind}_export)")
    exp.add_argument("--view", action="store_true", help="Export the dashboard view columns")
    exp.add_argument("--out", type=Path, default=Path("."))

    ins = sub.add_parser("inspect", help="Print headers and first rows of a file")
    ins.add_argument("file", type=Path)
    return p.parse_args(argv)


def _resolve_config(path: Path | None) -> IngestConfig:
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _run_import(cfg: IngestConfig, kind: RecordKind, file: Path, mime_type: str | None) -> int:
    logger = setup_logging()
    if not file.exists():
        logger.error(f"file not found: {file}")
        return EXIT_FATAL
    repository = repository_for(open_store(cfg), cfg, kind)
    try:
        result = import_file(file, kind, repository, mime_type=mime_type, config=cfg)
    except IngestError:
        # already logged by the pipeline
        return EXIT_FATAL
    summary_line = render_summary_line(result)
    log_summary(summary_line.removeprefix("SUMMARY "))
    return EXIT_WITH_WARNINGS if result.has_warnings else EXIT_SUCCESS


def _run_template(kind: RecordKind, blank: bool, sample_data_name: bool, out: Path) -> int:
    export = blank_template(kind) if blank else sample_template(kind, sample_data_name=sample_data_name)
    export.write_to(out)
    return EXIT_SUCCESS


def _view_rows(kind: RecordKind, records: list) -> list[dict]:
    if kind is RecordKind.PPM:
        return format_ppm_for_view([r for r in records if isinstance(r, PPMRecord)])
    if kind is RecordKind.OCM:
        return format_ocm_for_view([r for r in records if isinstance(r, OCMRecord)])
    return format_training_for_export([r for r in records if isinstance(r, TrainingRecord)])


def _run_export(cfg: IngestConfig, kind: RecordKind, base_name: str | None, view: bool, out: Path) -> int:
    logger = setup_logging()
    records = repository_for(open_store(cfg), cfg, kind).load()
    name = base_name or f"{kind.value}_export"
    try:
        if view:
            export = export_rows(_view_rows(kind, records), name)
        else:
            export = export_records(records, name)
    except IngestError as e:
        logger.error(f"export: {e}")
        return EXIT_FATAL
    export.write_to(out)
    log_summary(f"kind={kind.value} file={export.file_name} rows={export.rows}")
    return EXIT_SUCCESS


def _inspect(file: Path) -> int:
    try:
        sheet = read_upload(file)
    except (IngestError, OSError) as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {file.name} SHEET: {sheet.sheet_name}")
    print(f"  cols={sheet.columns}")
    print(f"  rows={len(sheet.rows)}")
    for row in sheet.rows[:3]:
        print(f"    {row}")
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args would leak in).
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        if args.command == "import":
            return _run_import(cfg, args.kind, args.file, args.mime_type)
        if args.command == "template":
            return _run_template(args.kind, args.blank, args.sample_data_name, args.out)
        if args.command == "export":
            return _run_export(cfg, args.kind, args.base_name, args.view, args.out)
        return _inspect(args.file)
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL

