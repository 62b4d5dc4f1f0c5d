"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from prg_convert.common.constants import (
    COMPRESSION_LEVEL_RANGES,
    OUTPUT_FORMATS,
    PARQUET_COMPRESSIONS,
    PARQUET_VERSIONS,
    SUPPORTED_EPSG,
)
from prg_convert.common.errors import ConfigError, UnsupportedConfigurationError

SECTION_KEYS = {
    "conversion": {"batch_size", "crs_epsg", "output_format"},
    "parquet": {"compression", "compression_level", "row_group_size", "version"},
    "teryt": {"service_url", "username_env", "password_env", "timeout_seconds", "download_dir"},
    "model2012": {"resolve_component_teryt_ids"},
}


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_conversion_section(section: dict) -> dict:
    if not _is_positive_int(section["batch_size"]):
        raise UnsupportedConfigurationError(
            f"conversion.batch_size must be a positive integer, got {section['batch_size']!r}"
        )
    if section["crs_epsg"] not in SUPPORTED_EPSG:
        raise UnsupportedConfigurationError(f"Unsupported conversion.crs_epsg: {section['crs_epsg']!r}")
    if section["output_format"] not in OUTPUT_FORMATS:
        raise UnsupportedConfigurationError(f"Unsupported conversion.output_format: {section['output_format']!r}")
    return section


def validate_parquet_section(section: dict) -> dict:
    if section["compression"] not in PARQUET_COMPRESSIONS:
        raise UnsupportedConfigurationError(f"Unsupported parquet.compression: {section['compression']!r}")
    level = section["compression_level"]
    if level is not None:
        if section["compression"] in ("snappy", "none"):
            raise UnsupportedConfigurationError(
                f"parquet.compression_level is not supported for {section['compression']}"
            )
        if not isinstance(level, int) or isinstance(level, bool):
            raise UnsupportedConfigurationError(f"parquet.compression_level must be an integer, got {level!r}")
        low, high = COMPRESSION_LEVEL_RANGES[section["compression"]]
        if not low <= level <= high:
            raise UnsupportedConfigurationError(
                f"parquet.compression_level {level} is outside {low}..{high} for {section['compression']}"
            )
    row_group_size = section["row_group_size"]
    if row_group_size is not None and not _is_positive_int(row_group_size):
        raise UnsupportedConfigurationError(
            f"parquet.row_group_size must be a positive integer, got {row_group_size!r}"
        )
    if section["version"] not in PARQUET_VERSIONS:
        raise UnsupportedConfigurationError(f"Unsupported parquet.version: {section['version']!r}")
    return section


def validate_teryt_section(section: dict) -> dict:
    if not isinstance(section["service_url"], str) or not section["service_url"].startswith("http"):
        raise ConfigError("teryt.service_url must be an http(s) URL")
    if not isinstance(section["timeout_seconds"], (int, float)) or section["timeout_seconds"] <= 0:
        raise ConfigError("teryt.timeout_seconds must be a positive number")
    return section


def validate_settings_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("Settings config must be a mapping")
    _assert_required_keys(cfg, set(SECTION_KEYS), "settings")
    _assert_no_unknown_keys(cfg, set(SECTION_KEYS), "settings", allow_unknown)

    for name, keys in SECTION_KEYS.items():
        section = cfg[name]
        if not isinstance(section, dict):
            raise ConfigError(f"Section {name} must be a mapping")
        _assert_required_keys(section, keys, name)
        _assert_no_unknown_keys(section, keys, name, allow_unknown)

    validate_conversion_section(cfg["conversion"])
    validate_parquet_section(cfg["parquet"])
    validate_teryt_section(cfg["teryt"])
    if not isinstance(cfg["model2012"]["resolve_component_teryt_ids"], bool):
        raise ConfigError("model2012.resolve_component_teryt_ids must be a boolean")
    return cfg
