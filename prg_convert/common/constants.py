"""Application constants."""

USER_AGENT = "prg-convert/0.3"
SCHEMA_VERSIONS = ("2012", "2021")
OUTPUT_FORMATS = ("csv", "geoparquet")
SUPPORTED_EPSG = (2180, 4326)
SOURCE_EPSG = 2180
PARQUET_COMPRESSIONS = ("zstd", "snappy", "brotli", "gzip", "none")
DEFAULT_COMPRESSION_LEVELS = {"zstd": 11, "brotli": 6}
COMPRESSION_LEVEL_RANGES = {"zstd": (1, 22), "brotli": (0, 11), "gzip": (1, 9)}
PARQUET_VERSIONS = {"v1": "1.0", "v2": "2.6"}
DEFAULT_BATCH_SIZE = 100_000

# Source pos order per schema; 2021 files carry easting first.
AXIS_ORDER_BY_SCHEMA = {"2012": "yx", "2021": "xy"}
ENTRY_SUFFIX_BY_SCHEMA = {"2012": ".xml", "2021": ".gml"}
INPUT_SUFFIXES = (".xml", ".gml", ".zip")

DEFAULT_SETTINGS = {
    "conversion": {
        "batch_size": DEFAULT_BATCH_SIZE,
        "crs_epsg": 2180,
        "output_format": "csv",
    },
    "parquet": {
        "compression": "zstd",
        "compression_level": None,
        "row_group_size": None,
        "version": "v2",
    },
    "teryt": {
        "service_url": "https://uslugaterytws1.stat.gov.pl/TerytWs1.svc",
        "username_env": "TERYT_USERNAME",
        "password_env": "TERYT_PASSWORD",
        "timeout_seconds": 120,
        "download_dir": None,
    },
    "model2012": {
        "resolve_component_teryt_ids": True,
    },
}

EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "schema_version",
    "source",
    "event",
    "status",
    "duration_ms",
    "rows_in",
    "rows_out",
    "batch",
    "error_code",
    "message",
)
