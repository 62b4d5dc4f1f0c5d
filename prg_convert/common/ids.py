"""Run identifier helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def generate_run_id(schema_version: str | None = None) -> str:
    """Sortable run id tagged with the PRG schema, e.g. ``prg2021-20260110T083000123456Z``."""
    stamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    tag = f"prg{schema_version}" if schema_version else "prg"
    return f"{tag}-{stamp}"
