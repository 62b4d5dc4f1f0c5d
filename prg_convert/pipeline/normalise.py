"""Raw schema records to canonical address rows."""

from __future__ import annotations

from datetime import datetime
from functools import partial
from typing import Callable, Mapping

from prg_convert.common.constants import SOURCE_EPSG
from prg_convert.common.errors import MalformedInputError, UnsupportedConfigurationError
from prg_convert.common.models import CanonicalAddressRecord, ComponentInfo, RawAddress2012, RawAddress2021
from prg_convert.common.time_utils import parse_timestamp
from prg_convert.parsers.street_names import build_street_name
from prg_convert.pipeline.coordinates import to_easting_northing, transform_point
from prg_convert.pipeline.teryt import TerytDictionary

TERYT_FIELD_BY_COMPONENT_KIND = {
    "voivodeship": "teryt_wojewodztwo",
    "county": "teryt_powiat",
    "municipality": "teryt_gmina",
    "locality": "teryt_miejscowosc",
    "street": "teryt_ulica",
}
TERC_CODE_LENGTHS = (2, 4, 7)

Normaliser = Callable[[object], CanonicalAddressRecord]


def _timestamp(value: str | None, field: str, raw) -> datetime | None:
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise MalformedInputError(str(exc), source=raw.source, element=field) from exc


def _coordinates(raw_pos, schema_version: str, target_epsg: int) -> tuple[float | None, float | None]:
    point = to_easting_northing(raw_pos, schema_version)
    if point is None:
        return None, None
    return transform_point(point[0], point[1], SOURCE_EPSG, target_epsg)


def _component_teryt_ids(refs: tuple[str, ...], components: Mapping[str, ComponentInfo] | None) -> dict[str, str | None]:
    ids: dict[str, str | None] = {name: None for name in TERYT_FIELD_BY_COMPONENT_KIND.values()}
    if not components:
        return ids
    for ref in refs:
        info = components.get(ref)
        if info is None:
            continue
        field = TERYT_FIELD_BY_COMPONENT_KIND.get(info.kind)
        if field is not None:
            ids[field] = info.teryt_id
    return ids


def normalise_2012(
    raw: RawAddress2012,
    *,
    target_epsg: int,
    components: Mapping[str, ComponentInfo] | None = None,
) -> CanonicalAddressRecord:
    _country, voivodeship, county, municipality = raw.admin_unit_names
    x, y = _coordinates(raw.raw_pos, "2012", target_epsg)
    teryt_ids = _component_teryt_ids(raw.component_refs, components)
    return CanonicalAddressRecord(
        przestrzen_nazw=raw.przestrzen_nazw,
        lokalny_id=raw.lokalny_id,
        wersja_id=_timestamp(raw.wersja_id, "wersjaId", raw),
        poczatek_wersji_obiektu=_timestamp(raw.poczatek_wersji_obiektu, "poczatekWersjiObiektu", raw),
        wazny_od_lub_data_nadania=_timestamp(raw.wazny_od, "waznyOd", raw),
        wazny_do=_timestamp(raw.wazny_do, "waznyDo", raw),
        teryt_wojewodztwo=teryt_ids["teryt_wojewodztwo"],
        wojewodztwo=voivodeship,
        teryt_powiat=teryt_ids["teryt_powiat"],
        powiat=county,
        teryt_gmina=teryt_ids["teryt_gmina"],
        gmina=municipality,
        teryt_miejscowosc=teryt_ids["teryt_miejscowosc"],
        miejscowosc=raw.miejscowosc,
        czesc_miejscowosci=raw.czesc_miejscowosci,
        teryt_ulica=teryt_ids["teryt_ulica"],
        ulica=raw.ulica,
        numer_porzadkowy=raw.numer_porzadkowy,
        kod_pocztowy=raw.kod_pocztowy,
        status=raw.status,
        x=x,
        y=y,
    )


def normalise_2021(
    raw: RawAddress2021,
    dictionary: TerytDictionary,
    *,
    target_epsg: int,
) -> CanonicalAddressRecord:
    code = raw.kod_terytorialny
    if len(code) not in TERC_CODE_LENGTHS:
        raise MalformedInputError(
            f"Unexpected kodTerytorialny length {len(code)} for {code!r}",
            source=raw.source,
            element="kodTerytorialny",
        )
    voivodeship_code = code[:2]
    county_code = code[:4] if len(code) >= 4 else None
    municipality_code = code if len(code) == 7 else None

    x, y = _coordinates(raw.raw_pos, "2021", target_epsg)
    return CanonicalAddressRecord(
        przestrzen_nazw=raw.przestrzen_nazw,
        lokalny_id=raw.lokalny_id,
        wersja_id=_timestamp(raw.wersja_id, "wersjaId", raw),
        poczatek_wersji_obiektu=_timestamp(raw.poczatek_wersji_obiektu, "poczatekWersjiObiektu", raw),
        wazny_od_lub_data_nadania=_timestamp(raw.data_nadania, "dataNadania", raw),
        wazny_do=_timestamp(raw.wazny_do, "waznyDo", raw),
        teryt_wojewodztwo=voivodeship_code,
        wojewodztwo=dictionary.resolve(voivodeship_code),
        teryt_powiat=county_code,
        powiat=dictionary.resolve(county_code) if county_code else None,
        teryt_gmina=municipality_code,
        gmina=dictionary.resolve(municipality_code) if municipality_code else None,
        teryt_miejscowosc=raw.teryt_miejscowosc,
        miejscowosc=raw.miejscowosc,
        czesc_miejscowosci=raw.czesc_miejscowosci,
        teryt_ulica=raw.teryt_ulica,
        ulica=build_street_name(raw.nazwa_glowna_ulicy, raw.nazwa_czesc_ulicy, raw.typ_ulicy),
        numer_porzadkowy=raw.numer_porzadkowy,
        kod_pocztowy=raw.kod_pocztowy,
        status=raw.status,
        x=x,
        y=y,
    )


def select_normaliser(
    schema_version: str,
    *,
    target_epsg: int,
    dictionary: TerytDictionary | None = None,
    components: Mapping[str, ComponentInfo] | None = None,
) -> Normaliser:
    """Bind the normaliser for a run; the schema decides once, not per record."""
    if schema_version == "2012":
        return partial(normalise_2012, target_epsg=target_epsg, components=components)
    if schema_version == "2021":
        if dictionary is None:
            raise UnsupportedConfigurationError("Schema 2021 requires a TERYT dictionary")
        return partial(normalise_2021, dictionary=dictionary, target_epsg=target_epsg)
    raise UnsupportedConfigurationError(f"Unsupported schema version: {schema_version!r}")
