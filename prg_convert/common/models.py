"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime


@dataclass(frozen=True)
class RawAddress2012:
    source: str
    lokalny_id: str
    przestrzen_nazw: str | None
    wersja_id: str | None
    poczatek_wersji_obiektu: str | None
    wazny_od: str | None
    wazny_do: str | None
    # country, voivodeship, county, municipality
    admin_unit_names: tuple[str | None, ...]
    miejscowosc: str | None
    czesc_miejscowosci: str | None
    ulica: str | None
    numer_porzadkowy: str | None
    kod_pocztowy: str | None
    status: str | None
    raw_pos: tuple[float, float] | None
    component_refs: tuple[str, ...] = ()


@dataclass(frozen=True)
class RawAddress2021:
    source: str
    lokalny_id: str
    przestrzen_nazw: str | None
    wersja_id: str | None
    poczatek_wersji_obiektu: str | None
    data_nadania: str | None
    wazny_do: str | None
    kod_terytorialny: str
    miejscowosc: str | None
    teryt_miejscowosc: str | None
    czesc_miejscowosci: str | None
    nazwa_glowna_ulicy: str | None
    nazwa_czesc_ulicy: str | None
    typ_ulicy: str | None
    teryt_ulica: str | None
    numer_porzadkowy: str | None
    kod_pocztowy: str | None
    status: str | None
    raw_pos: tuple[float, float] | None


@dataclass(frozen=True)
class ComponentInfo:
    """Named object referenced from 2012 addresses via ``xlink:href``."""

    kind: str
    name: str | None
    teryt_id: str | None


@dataclass(frozen=True)
class CanonicalAddressRecord:
    przestrzen_nazw: str | None
    lokalny_id: str
    wersja_id: datetime | None
    poczatek_wersji_obiektu: datetime | None
    wazny_od_lub_data_nadania: datetime | None
    wazny_do: datetime | None
    teryt_wojewodztwo: str | None
    wojewodztwo: str | None
    teryt_powiat: str | None
    powiat: str | None
    teryt_gmina: str | None
    gmina: str | None
    teryt_miejscowosc: str | None
    miejscowosc: str | None
    czesc_miejscowosci: str | None
    teryt_ulica: str | None
    ulica: str | None
    numer_porzadkowy: str | None
    kod_pocztowy: str | None
    status: str | None
    x: float | None
    y: float | None


RECORD_COLUMNS = tuple(field.name for field in fields(CanonicalAddressRecord))
CANONICAL_COLUMNS = (*RECORD_COLUMNS, "geometry")
