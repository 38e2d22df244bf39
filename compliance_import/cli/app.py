from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..commit.client import BatchCommitter, CommitError, CommitMetrics, DryRunCommitter, HttpBatchCommitter
from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..logging.error_log import ErrorLogBuffer, record_file_error, record_import_errors
from ..logging.init import enable_debug, get_logger, log_summary, setup_logging
from ..models.config_models import EntityImportConfig, ImportConfig
from ..models.import_result import CommitPolicy, PreviewResult
from ..parsing.template import template_csv, template_filename
from ..services.orchestrator import (
    BatchLimitError,
    CommitNotConfirmedError,
    ContextError,
    ImportFileError,
    commit_entity,
    preview_entity,
    read_import_file,
)
from ..services.reconciler import StructuralError
from ..services.report import preview_frame, row_errors_frame, write_outcome_report
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides existing environment) and config/import.yml
- Tokenize / reconcile / validate the CSV for the chosen entity
- Commit valid rows to the console's import endpoint (or --dry-run)
- Write the error log, optional outcome report and one SUMMARY line

Exit codes: 0 = every row committed, 2 = some rows rejected (or commit not
confirmed), 1 = fatal (config, unreadable file, missing columns, commit error).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

MAX_LOGGED_ROW_ERRORS = 20
INSPECT_RECORD_LIMIT = 20


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv.

    override=True lets .env values win over the existing environment so the
    commit endpoint settings in .env take precedence.
    """
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="compliance-import", description="Bulk CSV importer for the compliance console"
    )
    p.add_argument("entity", help="Entity type key from the config (e.g. systems, risks)")
    p.add_argument("file", nargs="?", help="CSV file to import")
    p.add_argument("--config", default=str(DEFAULT_CONFIG_PATH), help="Path to import.yml")
    p.add_argument("--dry-run", action="store_true", help="Validate and simulate the commit without network I/O")
    p.add_argument(
        "--review-invalid",
        action="store_true",
        help="Do not commit when rows fail validation unless --yes is given",
    )
    p.add_argument("--yes", action="store_true", help="Confirm the commit despite invalid rows")
    p.add_argument(
        "--context",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Context parameter sent with the batch (repeatable), e.g. system_id=abc",
    )
    p.add_argument("--report", help="Write a per-row outcome report (CSV) to this path")
    p.add_argument("--template", action="store_true", help="Write an empty CSV template for the entity and exit")
    p.add_argument("--inspect-data", action="store_true", help="Print header mapping & sample rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _parse_context(pairs: list[str]) -> dict[str, str]:
    context: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"invalid --context value (expected KEY=VALUE): {pair}")
        context[key.strip()] = value.strip()
    return context


def _build_committer(cfg: ImportConfig, entity: EntityImportConfig) -> BatchCommitter:
    """HTTP committer for an entity.

    Resolution order: environment (IMPORT_API_URL / IMPORT_API_TOKEN /
    IMPORT_API_TIMEOUT, .env already applied) then the api section of the config.
    """
    logger = get_logger()
    base_url = os.getenv("IMPORT_API_URL") or cfg.api.base_url
    if not base_url:
        raise ConfigError("commit endpoint not configured (set api.base_url or IMPORT_API_URL)")
    timeout_env = os.getenv("IMPORT_API_TIMEOUT")
    try:
        timeout = float(timeout_env) if timeout_env else cfg.api.timeout_seconds
    except ValueError as e:
        raise ConfigError(f"invalid IMPORT_API_TIMEOUT: {timeout_env}") from e

    def on_metrics(metrics: CommitMetrics) -> None:
        logger.debug(f"commit batch_size={metrics.batch_size} elapsed_sec={metrics.elapsed_seconds:.3f}")

    return HttpBatchCommitter(
        base_url,
        entity.endpoint,
        token=os.getenv("IMPORT_API_TOKEN"),
        timeout_seconds=timeout,
        metrics_callback=on_metrics,
    )


def _write_template(entity: EntityImportConfig) -> int:
    logger = get_logger()
    target = Path(template_filename(entity.label))
    # newline="" で CRLF をそのまま書き出す
    with target.open("w", encoding="utf-8", newline="") as f:
        f.write(template_csv(entity.schema))
    logger.info(f"template written: {target}")
    return EXIT_SUCCESS_ALL


def _inspect_data(preview: PreviewResult) -> int:
    print(f"HEADER: {preview.header}")
    for m in preview.mapping.matched:
        print(f"  {m.csv_header!r} -> {m.field_key}{' (required)' if m.required else ''}")
    if preview.mapping.unmatched:
        print(f"  unmatched={preview.mapping.unmatched}")
    print(f"ROWS: total={preview.total_rows} valid={preview.valid_count} invalid={preview.error_count}")
    for record in (preview.records or [])[:INSPECT_RECORD_LIMIT]:
        extra = f" extra={list(record.extra_values)}" if record.has_extra_values else ""
        print(f"  row {record.row_index}: {list(record.fields)}{extra}")
    if preview.sample:
        print(preview_frame(preview).to_string(index=False))
    if preview.row_errors:
        print(row_errors_frame(preview).to_string(index=False))
    return EXIT_SUCCESS_ALL


def _log_row_errors(preview: PreviewResult) -> None:
    logger = get_logger()
    for err in preview.row_errors[:MAX_LOGGED_ROW_ERRORS]:
        logger.warning(f"row {err.row_index}: {err.error}")
    remaining = preview.error_count - MAX_LOGGED_ROW_ERRORS
    if remaining > 0:
        logger.warning(f"... {remaining} more invalid rows")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む (テストで main([]) を呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(Path(args.config))
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    entity = cfg.entities.get(args.entity)
    if entity is None:
        logger.error(f"unknown entity: {args.entity} (available: {', '.join(sorted(cfg.entities))})")
        return EXIT_FATAL

    if args.template:
        return _write_template(entity)

    if not args.file:
        logger.error("a CSV file is required")
        return EXIT_FATAL

    try:
        context = _parse_context(args.context)
    except ValueError as e:
        logger.error(str(e))
        return EXIT_FATAL

    path = Path(args.file)
    error_log = ErrorLogBuffer()
    policy = CommitPolicy.REVIEW_INVALID if args.review_invalid else CommitPolicy.SKIP_INVALID
    logger.info(f"Importing {path.name} as {entity.label}")

    try:
        raw_text = read_import_file(path)
        preview = preview_entity(
            raw_text,
            entity,
            context or None,
            policy,
            sample_size=cfg.preview_sample_size,
            show_progress=not args.inspect_data,
            keep_records=args.inspect_data,
        )
    except ImportFileError as e:
        logger.error(f"file: {e}")
        return EXIT_FATAL
    except StructuralError as e:
        logger.error(f"structure: {e}")
        record_file_error(error_log, path.name, entity.key, "STRUCTURAL_ERROR", str(e))
        error_log.flush()
        return EXIT_FATAL

    logger.info(f"rows={preview.total_rows} valid={preview.valid_count} invalid={preview.error_count}")
    _log_row_errors(preview)

    if args.inspect_data:
        return _inspect_data(preview)

    committer: BatchCommitter | None = None
    try:
        committer = DryRunCommitter() if args.dry_run else _build_committer(cfg, entity)
        result = commit_entity(preview, entity, committer, context or None, confirmed=args.yes)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    except CommitNotConfirmedError as e:
        logger.warning(f"commit skipped: {e} (re-run with --yes to commit the valid rows)")
        return EXIT_PARTIAL_FAILURE
    except (ContextError, BatchLimitError) as e:
        logger.error(f"commit: {e}")
        return EXIT_FATAL
    except CommitError as e:
        logger.error(f"commit: {e}")
        record_file_error(error_log, path.name, entity.key, "COMMIT_ERROR", str(e))
        error_log.flush()
        return EXIT_FATAL
    finally:
        if isinstance(committer, HttpBatchCommitter):
            committer.close()

    mode = "dry-run" if args.dry_run else "live"
    logger.info(f"mode={mode} committed={result.success_count} failed={result.failed_count}")

    record_import_errors(error_log, path.name, entity.key, result)
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    if args.report:
        report_path = write_outcome_report(result, Path(args.report))
        logger.info(f"report written: {report_path}")

    # log_summary が "SUMMARY " を付けるので除去
    summary_line = render_summary_line(entity.key, result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.failed_count > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
