"""Configuration loading and validation."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from prg_convert.common.constants import DEFAULT_COMPRESSION_LEVELS, DEFAULT_SETTINGS, SCHEMA_VERSIONS
from prg_convert.common.errors import ConfigError, UnsupportedConfigurationError
from prg_convert.common.fs import read_yaml
from prg_convert.common.schema import validate_settings_config

SETTINGS_FILENAME = "prg_convert.yml"


@dataclass(frozen=True)
class ParquetOptions:
    compression: str = "zstd"
    compression_level: int | None = None
    row_group_size: int | None = None
    version: str = "v2"

    def effective_level(self) -> int | None:
        if self.compression_level is not None:
            return self.compression_level
        return DEFAULT_COMPRESSION_LEVELS.get(self.compression)

    def effective_row_group_size(self, batch_size: int) -> int:
        if self.row_group_size is None:
            return batch_size
        return min(self.row_group_size, batch_size)


@dataclass(frozen=True)
class TerytServiceConfig:
    service_url: str
    username_env: str
    password_env: str
    timeout_seconds: float
    download_dir: str | None = None


@dataclass(frozen=True)
class ConversionSettings:
    schema_version: str
    output_format: str
    crs_epsg: int
    batch_size: int
    parquet: ParquetOptions
    teryt: TerytServiceConfig
    resolve_component_teryt_ids: bool = True


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def load_settings_config(
    config_dir: Path | None,
    *,
    overlay_config_dir: Path | None = None,
    overrides: dict | None = None,
    allow_unknown: bool = False,
) -> dict:
    """Merge built-in defaults, the YAML file, its overlay and CLI overrides, then validate."""
    cfg = copy.deepcopy(DEFAULT_SETTINGS)
    if config_dir is not None:
        overlay_path = None
        if overlay_config_dir is not None:
            overlay_path = overlay_config_dir / SETTINGS_FILENAME
        file_cfg = _load_yaml_with_overlay(config_dir / SETTINGS_FILENAME, overlay_path)
        cfg = _deep_merge(cfg, file_cfg)
    if overrides:
        cfg = _deep_merge(cfg, overrides)
    return validate_settings_config(cfg, allow_unknown=allow_unknown)


def build_settings(cfg: dict, *, schema_version: str) -> ConversionSettings:
    if schema_version not in SCHEMA_VERSIONS:
        raise UnsupportedConfigurationError(f"Unsupported schema version: {schema_version!r}")
    conversion = cfg["conversion"]
    teryt = cfg["teryt"]
    return ConversionSettings(
        schema_version=schema_version,
        output_format=conversion["output_format"],
        crs_epsg=int(conversion["crs_epsg"]),
        batch_size=conversion["batch_size"],
        parquet=ParquetOptions(**cfg["parquet"]),
        teryt=TerytServiceConfig(
            service_url=teryt["service_url"],
            username_env=teryt["username_env"],
            password_env=teryt["password_env"],
            timeout_seconds=float(teryt["timeout_seconds"]),
            download_dir=teryt["download_dir"],
        ),
        resolve_component_teryt_ids=cfg["model2012"]["resolve_component_teryt_ids"],
    )
