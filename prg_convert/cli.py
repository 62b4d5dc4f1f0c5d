"""CLI entrypoint for the PRG address register converter."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from prg_convert.common.config_loader import build_settings, load_settings_config
from prg_convert.common.constants import (
    EXIT_HARD_FAIL,
    EXIT_SUCCESS,
    OUTPUT_FORMATS,
    PARQUET_COMPRESSIONS,
    PARQUET_VERSIONS,
    SCHEMA_VERSIONS,
    SUPPORTED_EPSG,
)
from prg_convert.common.errors import PipelineError
from prg_convert.common.ids import generate_run_id
from prg_convert.common.logging import build_logger, close_logger, log_event
from prg_convert.pipeline.convert import ConversionStats, run_conversion
from prg_convert.pipeline.reports import write_run_summary


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="prg-convert", description=__doc__)
    parser.add_argument("--input-paths", nargs="+", required=True, help="Files or glob patterns (.xml, .gml, .zip)")
    parser.add_argument("--output-path", required=True)
    parser.add_argument("--schema-version", required=True, choices=SCHEMA_VERSIONS)
    parser.add_argument("--output-format", default=None, choices=OUTPUT_FORMATS)
    parser.add_argument("--crs-epsg", type=int, default=None, choices=SUPPORTED_EPSG)
    teryt = parser.add_mutually_exclusive_group()
    teryt.add_argument("--teryt-path", default=None, help="TERC XML file or ZIP holding one")
    teryt.add_argument("--download-teryt", action="store_true")
    parser.add_argument("--batch-size", type=int, default=None)
    parser.add_argument("--parquet-compression", default=None, choices=PARQUET_COMPRESSIONS)
    parser.add_argument("--compression-level", type=int, default=None)
    parser.add_argument("--parquet-row-group-size", type=int, default=None)
    parser.add_argument("--parquet-version", default=None, choices=sorted(PARQUET_VERSIONS))
    parser.add_argument("--config-dir", default=None)
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--summary-path", default=None)
    return parser.parse_args(argv)


def cli_overrides(args: argparse.Namespace) -> dict:
    conversion = {
        "batch_size": args.batch_size,
        "crs_epsg": args.crs_epsg,
        "output_format": args.output_format,
    }
    parquet = {
        "compression": args.parquet_compression,
        "compression_level": args.compression_level,
        "row_group_size": args.parquet_row_group_size,
        "version": args.parquet_version,
    }
    overrides = {}
    for name, section in (("conversion", conversion), ("parquet", parquet)):
        values = {key: value for key, value in section.items() if value is not None}
        if values:
            overrides[name] = values
    # A new codec must not inherit the previous codec's level.
    if args.parquet_compression is not None and args.compression_level is None:
        overrides["parquet"]["compression_level"] = None
    return overrides


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id(args.schema_version)
    log_path = Path(args.log_file) if args.log_file else None
    logger = build_logger(run_id, level=args.log_level, log_path=log_path)
    output_path = Path(args.output_path)
    started = time.monotonic()
    settings = None
    stats = ConversionStats()

    try:
        cfg = load_settings_config(
            Path(args.config_dir) if args.config_dir else None,
            overlay_config_dir=Path(args.overlay_config_dir) if args.overlay_config_dir else None,
            overrides=cli_overrides(args),
        )
        settings = build_settings(cfg, schema_version=args.schema_version)
        log_event(
            logger,
            "run start",
            run_id=run_id,
            schema_version=settings.schema_version,
            source=",".join(args.input_paths),
            event="RUN_START",
            status="ok",
        )
        stats = run_conversion(
            settings,
            input_patterns=args.input_paths,
            output_path=output_path,
            logger=logger,
            run_id=run_id,
            teryt_path=Path(args.teryt_path) if args.teryt_path else None,
            download_teryt=args.download_teryt,
        )
    except Exception as exc:
        error_code = exc.error_code if isinstance(exc, PipelineError) else "UNEXPECTED_ERROR"
        log_event(
            logger,
            f"run failed: {type(exc).__name__}: {exc}",
            run_id=run_id,
            schema_version=args.schema_version,
            event="RUN_FAIL",
            status="error",
            error_code=error_code,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        if args.summary_path and settings is not None:
            write_run_summary(
                Path(args.summary_path),
                run_id=run_id,
                settings=settings,
                output_path=output_path,
                stats=stats,
                status="error",
                error_code=error_code,
            )
        close_logger(logger)
        return EXIT_HARD_FAIL

    log_event(
        logger,
        "run end",
        run_id=run_id,
        schema_version=settings.schema_version,
        source=str(output_path),
        event="RUN_END",
        status="ok",
        rows_in=stats.rows_in,
        rows_out=stats.rows_out,
        duration_ms=stats.duration_ms,
    )
    if args.summary_path:
        write_run_summary(Path(args.summary_path), run_id=run_id, settings=settings, output_path=output_path, stats=stats)
    close_logger(logger)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
