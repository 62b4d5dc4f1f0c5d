"""TERC dictionary: administrative unit codes to names."""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import IO, Mapping

from prg_convert.common.errors import MalformedInputError, MissingDictionaryEntryError
from prg_convert.parsers.xml_utils import collect_leaf_texts, first_text, iter_elements

ZIP_MAGIC = b"PK\x03\x04"
CODE_PARTS = ("WOJ", "POW", "GMI", "RODZ")
KIND_BY_CODE_LENGTH = {2: "voivodeship", 4: "county", 7: "municipality"}


@dataclass(frozen=True)
class TerytEntry:
    code: str
    name: str
    valid_on: str | None = None


@dataclass(frozen=True)
class TerytDictionary:
    entries: Mapping[str, TerytEntry] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.entries, MappingProxyType):
            object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    @classmethod
    def from_names(cls, names: Mapping[str, str]) -> "TerytDictionary":
        return cls({code: TerytEntry(code=code, name=name) for code, name in names.items()})

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def state_date(self) -> str | None:
        """Latest STAN_NA date carried by the catalogue rows."""
        dates = [entry.valid_on for entry in self.entries.values() if entry.valid_on]
        return max(dates) if dates else None

    def resolve(self, code: str) -> str:
        entry = self.entries.get(code)
        if entry is None:
            raise MissingDictionaryEntryError(code)
        return entry.name


def _xml_member(archive: zipfile.ZipFile, *, source: str) -> str:
    for name in archive.namelist():
        if name.lower().endswith(".xml"):
            return name
    raise MalformedInputError("TERYT archive holds no XML file", source=source)


def _parse_rows(stream: IO[bytes], *, source: str) -> dict[str, TerytEntry]:
    entries: dict[str, TerytEntry] = {}
    for row in iter_elements(stream, ("row",), source=source):
        texts = collect_leaf_texts(row)
        code = "".join(first_text(texts, part) or "" for part in CODE_PARTS)
        if len(code) not in KIND_BY_CODE_LENGTH:
            raise MalformedInputError(
                f"Unexpected TERC code length {len(code)} for {code!r}",
                source=source,
                element="row",
                line=row.sourceline,
            )
        name = first_text(texts, "NAZWA")
        if name is None:
            raise MalformedInputError(f"TERC row {code} has no NAZWA", source=source, element="row", line=row.sourceline)
        entries[code] = TerytEntry(
            code=code,
            name=name,
            valid_on=first_text(texts, "STAN_NA"),
        )
    return entries


def build_teryt_dictionary(stream: IO[bytes], *, source: str = "<teryt>") -> TerytDictionary:
    """Build the dictionary from a TERC XML document or a ZIP archive holding one."""
    payload = stream.read()
    if payload[:4] == ZIP_MAGIC:
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as archive:
                member = _xml_member(archive, source=source)
                with archive.open(member) as xml_stream:
                    entries = _parse_rows(xml_stream, source=f"{source}!{member}")
        except zipfile.BadZipFile as exc:
            raise MalformedInputError(f"Invalid TERYT archive: {exc}", source=source) from exc
    else:
        entries = _parse_rows(io.BytesIO(payload), source=source)
    return TerytDictionary(entries)


def load_teryt_dictionary(path: Path) -> TerytDictionary:
    try:
        with path.open("rb") as stream:
            return build_teryt_dictionary(stream, source=str(path))
    except OSError as exc:
        raise MalformedInputError(f"Cannot read TERYT file: {exc}", source=str(path)) from exc
