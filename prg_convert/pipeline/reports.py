"""Run summary report."""

from __future__ import annotations

from pathlib import Path

from prg_convert.common.config_loader import ConversionSettings
from prg_convert.common.fs import file_size_or_none, write_json


def write_run_summary(
    summary_path: Path,
    *,
    run_id: str,
    settings: ConversionSettings,
    output_path: Path,
    stats,
    status: str = "success",
    error_code: str | None = None,
) -> Path:
    payload = {
        "run_id": run_id,
        "status": status,
        "error_code": error_code,
        "schema_version": settings.schema_version,
        "output_format": settings.output_format,
        "crs_epsg": settings.crs_epsg,
        "batch_size": settings.batch_size,
        "output_path": str(output_path),
        "output_bytes": file_size_or_none(output_path),
        "totals": {
            "files": stats.files,
            "rows_in": stats.rows_in,
            "rows_out": stats.rows_out,
            "batches": stats.batches,
        },
        "duration_ms": stats.duration_ms,
        "sources": stats.sources,
    }
    write_json(summary_path, payload)
    return summary_path
