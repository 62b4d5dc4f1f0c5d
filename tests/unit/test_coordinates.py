import pytest

from prg_convert.common.errors import UnsupportedConfigurationError
from prg_convert.pipeline.coordinates import to_easting_northing, transform_point


def test_axis_order_is_fixed_per_schema():
    # true easting 637000.25, northing 487000.5
    assert to_easting_northing((487000.5, 637000.25), "2012") == (637000.25, 487000.5)
    assert to_easting_northing((637000.25, 487000.5), "2021") == (637000.25, 487000.5)
    assert to_easting_northing(None, "2012") is None


def test_axis_order_rejects_unknown_schema():
    with pytest.raises(UnsupportedConfigurationError):
        to_easting_northing((1.0, 2.0), "2030")


def test_transform_same_crs_is_identity():
    assert transform_point(637000.25, 487000.5, 2180, 2180) == (637000.25, 487000.5)


def test_transform_2180_to_4326_gives_lon_lat_in_poland():
    lon, lat = transform_point(637000.25, 487000.5, 2180, 4326)
    assert 20.5 < lon < 21.5
    assert 51.8 < lat < 52.6


def test_transform_round_trip_within_centimetre():
    x, y = 360123.45, 358456.78
    lon, lat = transform_point(x, y, 2180, 4326)
    back_x, back_y = transform_point(lon, lat, 4326, 2180)
    assert back_x == pytest.approx(x, abs=0.01)
    assert back_y == pytest.approx(y, abs=0.01)


def test_transform_rejects_unsupported_epsg():
    with pytest.raises(UnsupportedConfigurationError):
        transform_point(1.0, 2.0, 2180, 3857)
