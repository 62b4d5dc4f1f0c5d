"""Axis-order correction and CRS transformation for PRG positions."""

from __future__ import annotations

from functools import lru_cache

from pyproj import CRS, Transformer

from prg_convert.common.constants import AXIS_ORDER_BY_SCHEMA, SUPPORTED_EPSG
from prg_convert.common.errors import UnsupportedConfigurationError


def to_easting_northing(raw_pos: tuple[float, float] | None, schema_version: str) -> tuple[float, float] | None:
    """Reorder a source ``gml:pos`` pair into ``(x, y)`` using the fixed order of its schema."""
    if raw_pos is None:
        return None
    order = AXIS_ORDER_BY_SCHEMA.get(schema_version)
    if order is None:
        raise UnsupportedConfigurationError(f"Unsupported schema version: {schema_version!r}")
    first, second = raw_pos
    if order == "yx":
        return second, first
    return first, second


@lru_cache(maxsize=None)
def get_transformer(source_epsg: int, target_epsg: int) -> Transformer:
    for epsg in (source_epsg, target_epsg):
        if epsg not in SUPPORTED_EPSG:
            raise UnsupportedConfigurationError(f"Unsupported EPSG code: {epsg}")
    return Transformer.from_crs(CRS.from_epsg(source_epsg), CRS.from_epsg(target_epsg), always_xy=True)


def transform_point(x: float, y: float, source_epsg: int, target_epsg: int) -> tuple[float, float]:
    if source_epsg == target_epsg:
        return x, y
    transformed_x, transformed_y = get_transformer(source_epsg, target_epsg).transform(x, y)
    return transformed_x, transformed_y
