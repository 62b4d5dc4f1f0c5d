"""Input path expansion and archive entry access."""

from __future__ import annotations

import glob
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator

from prg_convert.common.constants import ENTRY_SUFFIX_BY_SCHEMA, INPUT_SUFFIXES
from prg_convert.common.errors import ConfigError, MalformedInputError, UnsupportedConfigurationError

GLOB_CHARS = ("*", "?", "[")


@dataclass(frozen=True)
class InputSource:
    path: Path
    member: str | None = None

    @property
    def label(self) -> str:
        if self.member is None:
            return str(self.path)
        return f"{self.path}!{self.member}"

    @contextmanager
    def open(self) -> Iterator[IO[bytes]]:
        """Yield a decompressed byte stream; archive members are inflated on the fly."""
        if self.member is None:
            with self.path.open("rb") as stream:
                yield stream
            return
        try:
            archive = zipfile.ZipFile(self.path)
        except zipfile.BadZipFile as exc:
            raise MalformedInputError(f"Invalid ZIP archive: {exc}", source=str(self.path)) from exc
        with archive, archive.open(self.member) as stream:
            yield stream


def expand_patterns(patterns: list[str]) -> list[Path]:
    paths: list[Path] = []
    for pattern in patterns:
        if any(char in pattern for char in GLOB_CHARS):
            matches = sorted(glob.glob(pattern, recursive=True))
            if not matches:
                raise ConfigError(f"No input files match pattern: {pattern}")
            paths.extend(Path(match) for match in matches)
        else:
            paths.append(Path(pattern))
    return paths


def archive_members(path: Path, schema_version: str) -> list[str]:
    suffix = ENTRY_SUFFIX_BY_SCHEMA[schema_version]
    try:
        with zipfile.ZipFile(path) as archive:
            members = [
                info.filename
                for info in archive.infolist()
                if not info.is_dir() and info.filename.lower().endswith(suffix)
            ]
    except zipfile.BadZipFile as exc:
        raise MalformedInputError(f"Invalid ZIP archive: {exc}", source=str(path)) from exc
    if not members:
        raise MalformedInputError(f"Archive holds no {suffix} entries for schema {schema_version}", source=str(path))
    return members


def resolve_inputs(patterns: list[str], schema_version: str) -> list[InputSource]:
    if schema_version not in ENTRY_SUFFIX_BY_SCHEMA:
        raise UnsupportedConfigurationError(f"Unsupported schema version: {schema_version!r}")

    sources: list[InputSource] = []
    for path in expand_patterns(patterns):
        if path.is_dir():
            raise ConfigError(f"Input path is a directory: {path}")
        if not path.exists():
            raise ConfigError(f"Input file not found: {path}")
        suffix = path.suffix.lower()
        if suffix not in INPUT_SUFFIXES:
            raise UnsupportedConfigurationError(f"Unsupported input extension {suffix!r}: {path}")
        if suffix == ".zip":
            sources.extend(InputSource(path, member) for member in archive_members(path, schema_version))
        else:
            sources.append(InputSource(path))
    return sources
