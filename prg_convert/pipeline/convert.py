"""Conversion runner: parser -> normaliser -> batches -> sink."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from prg_convert.common.config_loader import ConversionSettings
from prg_convert.common.errors import ConfigError, UnsupportedConfigurationError
from prg_convert.common.http import HttpClient
from prg_convert.common.logging import log_event
from prg_convert.parsers.model2012 import build_component_index, parse_model2012
from prg_convert.parsers.model2021 import parse_model2021
from prg_convert.pipeline.batching import BatchAccumulator
from prg_convert.pipeline.export import open_sink
from prg_convert.pipeline.normalise import select_normaliser
from prg_convert.pipeline.teryt import TerytDictionary, load_teryt_dictionary
from prg_convert.sources.inputs import InputSource, resolve_inputs
from prg_convert.sources.teryt_download import download_terc

PARSERS = {
    "2012": parse_model2012,
    "2021": parse_model2021,
}


@dataclass
class ConversionStats:
    files: int = 0
    rows_in: int = 0
    rows_out: int = 0
    batches: int = 0
    duration_ms: int = 0
    sources: list[dict] = field(default_factory=list)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


def validate_run_options(
    settings: ConversionSettings,
    *,
    output_path: Path,
    teryt_path: Path | None,
    download_teryt: bool,
) -> None:
    if settings.schema_version == "2021" and teryt_path is None and not download_teryt:
        raise UnsupportedConfigurationError("Schema 2021 needs a TERYT source: pass --teryt-path or --download-teryt")
    if teryt_path is not None and download_teryt:
        raise ConfigError("Use either --teryt-path or --download-teryt, not both")
    if teryt_path is not None and not teryt_path.is_file():
        raise ConfigError(f"TERYT file not found: {teryt_path}")
    if output_path.is_dir():
        raise ConfigError(f"Output path is a directory: {output_path}")


def prepare_dictionary(
    settings: ConversionSettings,
    *,
    output_path: Path,
    teryt_path: Path | None,
    download_teryt: bool,
    logger: logging.Logger,
    run_id: str,
    http_client: HttpClient | None = None,
) -> TerytDictionary | None:
    if settings.schema_version != "2021":
        return None

    if download_teryt:
        download_dir = Path(settings.teryt.download_dir) if settings.teryt.download_dir else output_path.parent
        started = time.monotonic()
        teryt_path = download_terc(settings.teryt, download_dir, client=http_client)
        log_event(
            logger,
            f"downloaded TERC catalogue to {teryt_path}",
            run_id=run_id,
            source=str(teryt_path),
            event="TERYT_DOWNLOAD",
            status="ok",
            duration_ms=_elapsed_ms(started),
        )

    dictionary = load_teryt_dictionary(teryt_path)
    log_event(
        logger,
        f"TERYT dictionary loaded (STAN_NA {dictionary.state_date or 'unknown'})",
        run_id=run_id,
        source=str(teryt_path),
        event="TERYT_LOADED",
        status="ok",
        rows_out=len(dictionary),
    )
    return dictionary


def _component_index(source: InputSource, *, logger: logging.Logger, run_id: str) -> dict:
    with source.open() as stream:
        components = build_component_index(stream, source=source.label)
    log_event(
        logger,
        "component index built",
        run_id=run_id,
        schema_version="2012",
        source=source.label,
        event="COMPONENTS_INDEXED",
        status="ok",
        rows_out=len(components),
    )
    return components


def run_conversion(
    settings: ConversionSettings,
    *,
    input_patterns: list[str],
    output_path: Path,
    logger: logging.Logger,
    run_id: str,
    teryt_path: Path | None = None,
    download_teryt: bool = False,
    http_client: HttpClient | None = None,
) -> ConversionStats:
    """Convert every resolved input into one output file.

    All option checks, input resolution and the TERYT dictionary happen
    before the sink is opened; any error afterwards aborts the run.
    """
    started = time.monotonic()
    schema_version = settings.schema_version
    validate_run_options(settings, output_path=output_path, teryt_path=teryt_path, download_teryt=download_teryt)
    sources = resolve_inputs(input_patterns, schema_version)
    dictionary = prepare_dictionary(
        settings,
        output_path=output_path,
        teryt_path=teryt_path,
        download_teryt=download_teryt,
        logger=logger,
        run_id=run_id,
        http_client=http_client,
    )

    parse = PARSERS[schema_version]
    normalise = select_normaliser(schema_version, target_epsg=settings.crs_epsg, dictionary=dictionary)
    stats = ConversionStats()

    with open_sink(
        settings.output_format,
        output_path,
        target_epsg=settings.crs_epsg,
        batch_size=settings.batch_size,
        parquet=settings.parquet,
    ) as sink:

        def emit(batch) -> None:
            sink.write_batch(batch)
            log_event(
                logger,
                "batch written",
                run_id=run_id,
                schema_version=schema_version,
                event="BATCH_WRITTEN",
                status="ok",
                rows_out=len(batch),
                batch=accumulator.batches_emitted + 1,
            )

        accumulator = BatchAccumulator(settings.batch_size, emit)

        for source in sources:
            file_started = time.monotonic()
            log_event(
                logger,
                "file start",
                run_id=run_id,
                schema_version=schema_version,
                source=source.label,
                event="FILE_START",
                status="ok",
            )
            if schema_version == "2012" and settings.resolve_component_teryt_ids:
                components = _component_index(source, logger=logger, run_id=run_id)
                normalise = select_normaliser(schema_version, target_epsg=settings.crs_epsg, components=components)

            rows_in = 0
            with source.open() as stream:
                for raw in parse(stream, source=source.label):
                    rows_in += 1
                    accumulator.add(normalise(raw))

            stats.files += 1
            stats.rows_in += rows_in
            stats.sources.append({"source": source.label, "rows_in": rows_in})
            log_event(
                logger,
                "file end",
                run_id=run_id,
                schema_version=schema_version,
                source=source.label,
                event="FILE_END",
                status="ok",
                rows_in=rows_in,
                duration_ms=_elapsed_ms(file_started),
            )

        accumulator.flush()

    stats.rows_out = accumulator.rows_emitted
    stats.batches = accumulator.batches_emitted
    stats.duration_ms = _elapsed_ms(started)
    return stats
