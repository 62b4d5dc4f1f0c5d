"""Canonical CSV and GeoParquet export."""

from __future__ import annotations

import csv
import json
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from types import TracebackType

import pyarrow as pa
import pyarrow.parquet as pq
from pyproj import CRS
from shapely.geometry import Point

from prg_convert.common.config_loader import ParquetOptions
from prg_convert.common.constants import PARQUET_VERSIONS
from prg_convert.common.errors import OutputWriteError, UnsupportedConfigurationError
from prg_convert.common.fs import ensure_dir
from prg_convert.common.models import CANONICAL_COLUMNS, RECORD_COLUMNS, CanonicalAddressRecord
from prg_convert.common.time_utils import format_timestamp_ms

GEOPARQUET_VERSION = "1.1.0"
GEOMETRY_COLUMN = "geometry"
TIMESTAMP_COLUMNS = ("wersja_id", "poczatek_wersji_obiektu", "wazny_od_lub_data_nadania", "wazny_do")
FLOAT_COLUMNS = ("x", "y")


def _arrow_type(column: str) -> pa.DataType:
    if column in TIMESTAMP_COLUMNS:
        return pa.timestamp("ms", tz="UTC")
    if column in FLOAT_COLUMNS:
        return pa.float64()
    if column == GEOMETRY_COLUMN:
        return pa.binary()
    return pa.string()


ARROW_FIELDS = [pa.field(column, _arrow_type(column), nullable=column != "lokalny_id") for column in CANONICAL_COLUMNS]


@lru_cache(maxsize=None)
def crs_projjson(epsg: int) -> dict:
    return CRS.from_epsg(epsg).to_json_dict()


def geo_metadata(epsg: int) -> dict:
    return {
        "version": GEOPARQUET_VERSION,
        "primary_column": GEOMETRY_COLUMN,
        "columns": {
            GEOMETRY_COLUMN: {
                "encoding": "WKB",
                "geometry_types": ["Point"],
                "crs": crs_projjson(epsg),
            }
        },
    }


def arrow_schema(epsg: int) -> pa.Schema:
    return pa.schema(ARROW_FIELDS, metadata={b"geo": json.dumps(geo_metadata(epsg)).encode("utf-8")})


def _point(record: CanonicalAddressRecord) -> Point | None:
    if record.x is None or record.y is None:
        return None
    return Point(record.x, record.y)


def _serialize_value(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return format_timestamp_ms(value)
    if isinstance(value, float):
        return repr(value)
    return str(value)


def serialize_csv_row(record: CanonicalAddressRecord) -> list[str]:
    row = [_serialize_value(getattr(record, column)) for column in RECORD_COLUMNS]
    point = _point(record)
    row.append(point.wkt if point is not None else "")
    return row


def arrow_row(record: CanonicalAddressRecord) -> dict:
    row = {column: getattr(record, column) for column in RECORD_COLUMNS}
    point = _point(record)
    row[GEOMETRY_COLUMN] = point.wkb if point is not None else None
    return row


class CsvSink:
    def __init__(self, path: Path) -> None:
        self.path = path
        self.rows_written = 0
        self._handle = None
        self._writer = None

    def __enter__(self) -> "CsvSink":
        try:
            ensure_dir(self.path.parent)
            self._handle = self.path.open("w", encoding="utf-8", newline="")
            self._writer = csv.writer(self._handle)
            self._writer.writerow(CANONICAL_COLUMNS)
        except OSError as exc:
            raise OutputWriteError(f"Cannot open CSV output {self.path}: {exc}") from exc
        return self

    def write_batch(self, batch: list[CanonicalAddressRecord]) -> None:
        try:
            self._writer.writerows(serialize_csv_row(record) for record in batch)
        except OSError as exc:
            raise OutputWriteError(f"Cannot write CSV output {self.path}: {exc}") from exc
        self.rows_written += len(batch)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        except OSError as close_exc:
            if exc is None:
                raise OutputWriteError(f"Cannot finalise CSV output {self.path}: {close_exc}") from close_exc


class GeoParquetSink:
    def __init__(self, path: Path, *, epsg: int, batch_size: int, options: ParquetOptions) -> None:
        self.path = path
        self.schema = arrow_schema(epsg)
        self.options = options
        self.row_group_size = options.effective_row_group_size(batch_size)
        self.rows_written = 0
        self._writer: pq.ParquetWriter | None = None

    def __enter__(self) -> "GeoParquetSink":
        try:
            ensure_dir(self.path.parent)
            self._writer = pq.ParquetWriter(
                str(self.path),
                self.schema,
                compression=self.options.compression,
                compression_level=self.options.effective_level(),
                version=PARQUET_VERSIONS[self.options.version],
            )
        except (OSError, pa.ArrowException) as exc:
            raise OutputWriteError(f"Cannot open GeoParquet output {self.path}: {exc}") from exc
        return self

    def write_batch(self, batch: list[CanonicalAddressRecord]) -> None:
        try:
            table = pa.Table.from_pylist([arrow_row(record) for record in batch], schema=self.schema)
            self._writer.write_table(table, row_group_size=self.row_group_size)
        except (OSError, pa.ArrowException) as exc:
            raise OutputWriteError(f"Cannot write GeoParquet output {self.path}: {exc}") from exc
        self.rows_written += len(batch)

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._writer is None:
            return
        try:
            self._writer.close()
        except (OSError, pa.ArrowException) as close_exc:
            if exc is None:
                raise OutputWriteError(f"Cannot finalise GeoParquet output {self.path}: {close_exc}") from close_exc


def open_sink(
    output_format: str,
    path: Path,
    *,
    target_epsg: int,
    batch_size: int,
    parquet: ParquetOptions | None = None,
) -> CsvSink | GeoParquetSink:
    if output_format == "csv":
        return CsvSink(path)
    if output_format == "geoparquet":
        return GeoParquetSink(path, epsg=target_epsg, batch_size=batch_size, options=parquet or ParquetOptions())
    raise UnsupportedConfigurationError(f"Unsupported output format: {output_format!r}")
