from __future__ import annotations

import base64
import io
import logging
import zipfile
from dataclasses import replace
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from prg_convert.common.config_loader import ParquetOptions, build_settings, load_settings_config
from prg_convert.common.errors import ConfigError, UnsupportedConfigurationError
from prg_convert.common.logging import build_logger
from prg_convert.pipeline.convert import run_conversion

FIXTURES = Path(__file__).resolve().parents[1] / "fixtures"


class FakeTerytClient:
    def __init__(self, archive: bytes):
        self.archive = archive
        self.calls = 0

    def post_xml(self, url, *, body, headers=None, timeout=None):
        self.calls += 1
        encoded = base64.b64encode(self.archive).decode("ascii")
        return (
            '<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope"><s:Body>'
            f"<r><plik_zawartosc>{encoded}</plik_zawartosc></r>"
            "</s:Body></s:Envelope>"
        ).encode("utf-8")


def _settings(schema_version: str, **overrides):
    return build_settings(load_settings_config(None, overrides=overrides), schema_version=schema_version)


def _logger() -> logging.Logger:
    return build_logger("run-test", level="ERROR")


def _terc_archive() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.write(FIXTURES / "sample_terc.xml", "TERC.xml")
    return buffer.getvalue()


@pytest.mark.integration
def test_run_conversion_downloads_teryt_when_requested(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TERYT_USERNAME", "TestPubliczny")
    monkeypatch.setenv("TERYT_PASSWORD", "1234abcd")
    client = FakeTerytClient(_terc_archive())
    settings = _settings("2021")
    settings = replace(settings, teryt=replace(settings.teryt, download_dir=str(tmp_path / "teryt")))

    stats = run_conversion(
        settings,
        input_patterns=[str(FIXTURES / "sample_model2021.gml")],
        output_path=tmp_path / "out.csv",
        logger=_logger(),
        run_id="run-test",
        download_teryt=True,
        http_client=client,
    )

    assert client.calls == 1
    assert stats.rows_out == 2
    assert list((tmp_path / "teryt").glob("TERC_*.zip"))


@pytest.mark.integration
def test_run_conversion_row_groups_never_exceed_batch_size(tmp_path: Path):
    first = tmp_path / "a.xml"
    second = tmp_path / "b.xml"
    first.write_bytes((FIXTURES / "sample_model2012.xml").read_bytes())
    second.write_bytes((FIXTURES / "sample_model2012.xml").read_bytes())
    settings = replace(
        _settings("2012", conversion={"output_format": "geoparquet", "batch_size": 2}),
        parquet=ParquetOptions(compression="snappy", row_group_size=10_000, version="v1"),
    )
    out = tmp_path / "out.parquet"

    stats = run_conversion(
        settings,
        input_patterns=[str(tmp_path / "*.xml")],
        output_path=out,
        logger=_logger(),
        run_id="run-test",
    )

    metadata = pq.ParquetFile(out).metadata
    assert stats.files == 2
    assert stats.rows_in == stats.rows_out == metadata.num_rows == 6
    assert stats.batches == 3
    assert all(metadata.row_group(i).num_rows <= 2 for i in range(metadata.num_row_groups))
    assert metadata.format_version == "1.0"


@pytest.mark.integration
def test_run_conversion_without_component_pass_leaves_teryt_ids_empty(tmp_path: Path):
    settings = replace(_settings("2012"), resolve_component_teryt_ids=False)
    out = tmp_path / "out.csv"

    run_conversion(
        settings,
        input_patterns=[str(FIXTURES / "sample_model2012.xml")],
        output_path=out,
        logger=_logger(),
        run_id="run-test",
    )

    header, first = out.read_text(encoding="utf-8").splitlines()[:2]
    columns = header.split(",")
    assert first.split(",")[columns.index("teryt_wojewodztwo")] == ""


def test_run_conversion_validates_before_streaming(tmp_path: Path):
    with pytest.raises(UnsupportedConfigurationError):
        run_conversion(
            _settings("2021"),
            input_patterns=[str(FIXTURES / "sample_model2021.gml")],
            output_path=tmp_path / "out.csv",
            logger=_logger(),
            run_id="run-test",
        )
    with pytest.raises(ConfigError):
        run_conversion(
            _settings("2021"),
            input_patterns=[str(FIXTURES / "sample_model2021.gml")],
            output_path=tmp_path / "out.csv",
            logger=_logger(),
            run_id="run-test",
            teryt_path=tmp_path / "missing.xml",
        )
    assert not (tmp_path / "out.csv").exists()
