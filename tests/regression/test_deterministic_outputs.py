from __future__ import annotations

from pathlib import Path

import pyarrow.parquet as pq
import pytest

from prg_convert.cli import parse_args, run_command

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


def _run_once(out: Path, run_id: str, *extra: str) -> None:
    args = parse_args(
        [
            "--input-paths",
            str(FIXTURES / "sample_model2012.xml"),
            "--output-path",
            str(out),
            "--schema-version",
            "2012",
            "--run-id",
            run_id,
            *extra,
        ]
    )
    assert run_command(args) == 0


@pytest.mark.regression
def test_csv_outputs_are_byte_stable_for_same_inputs(tmp_path: Path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"

    _run_once(first, "run-a")
    _run_once(second, "run-b", "--batch-size", "1")

    assert first.read_bytes() == second.read_bytes()


@pytest.mark.regression
def test_csv_and_geoparquet_share_column_order(tmp_path: Path):
    csv_out = tmp_path / "out.csv"
    parquet_out = tmp_path / "out.parquet"

    _run_once(csv_out, "run-a")
    _run_once(parquet_out, "run-b", "--output-format", "geoparquet")

    csv_header = csv_out.read_text(encoding="utf-8").splitlines()[0].split(",")
    assert pq.read_schema(parquet_out).names == csv_header
