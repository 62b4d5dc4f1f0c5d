"""Streaming decoder for the 2012 PRG address schema (``prg-ad``)."""

from __future__ import annotations

from typing import IO, Iterator

from lxml import etree

from prg_convert.common.errors import MalformedInputError
from prg_convert.common.models import ComponentInfo, RawAddress2012
from prg_convert.parsers.xml_utils import (
    collect_leaf_texts,
    first_text,
    get_attribute,
    iter_elements,
    local_name,
    parse_gml_pos,
)

ADDRESS_TAG = "PRG_PunktAdresowy"
ADMIN_UNIT_TAG = "PRG_JednostkaAdministracyjnaNazwa"
LOCALITY_TAG = "PRG_MiejscowoscNazwa"
STREET_TAG = "PRG_UlicaNazwa"
COMPONENT_TAGS = (ADMIN_UNIT_TAG, LOCALITY_TAG, STREET_TAG)
COMPONENT_URI_PREFIX = "http://geoportal.gov.pl/PZGIK/dane/"

# The source schema misspells this element; keep it verbatim.
ADMIN_UNIT_NAME_FIELD = "jednostkaAdmnistracyjna"
ADMIN_UNIT_COUNT = 4

ADMIN_LEVELS = {
    "1poziom": "country",
    "2poziom": "voivodeship",
    "3poziom": "county",
    "4poziom": "municipality",
}
STREET_NAME_PARTS = ("przedrostek1Czesc", "przedrostek2Czesc", "nazwaCzesc", "nazwaGlownaCzesc")


def _component_refs(elem: etree._Element, *, source: str) -> tuple[str, ...]:
    refs = []
    for child in elem.iterdescendants():
        if local_name(child) == "komponent":
            refs.append(get_attribute(child, "href", source=source))
    return tuple(refs)


def _decode_address(elem: etree._Element, *, source: str) -> RawAddress2012:
    texts = collect_leaf_texts(elem)

    lokalny_id = first_text(texts, "lokalnyId")
    if lokalny_id is None:
        raise MalformedInputError("Address without lokalnyId", source=source, element=ADDRESS_TAG, line=elem.sourceline)

    admin_units = tuple(texts.get(ADMIN_UNIT_NAME_FIELD, []))
    if len(admin_units) != ADMIN_UNIT_COUNT:
        raise MalformedInputError(
            f"Expected {ADMIN_UNIT_COUNT} {ADMIN_UNIT_NAME_FIELD} entries, found {len(admin_units)}",
            source=source,
            element=ADDRESS_TAG,
            line=elem.sourceline,
        )

    return RawAddress2012(
        source=source,
        lokalny_id=lokalny_id,
        przestrzen_nazw=first_text(texts, "przestrzenNazw"),
        wersja_id=first_text(texts, "wersjaId"),
        poczatek_wersji_obiektu=first_text(texts, "poczatekWersjiObiektu"),
        wazny_od=first_text(texts, "waznyOd"),
        wazny_do=first_text(texts, "waznyDo"),
        admin_unit_names=admin_units,
        miejscowosc=first_text(texts, "miejscowosc"),
        czesc_miejscowosci=first_text(texts, "czescMiejscowosci"),
        ulica=first_text(texts, "ulica"),
        numer_porzadkowy=first_text(texts, "numerPorzadkowy"),
        kod_pocztowy=first_text(texts, "kodPocztowy"),
        status=first_text(texts, "status"),
        raw_pos=parse_gml_pos(first_text(texts, "pos"), source=source, line=elem.sourceline),
        component_refs=_component_refs(elem, source=source),
    )


def parse_model2012(stream: IO[bytes], *, source: str = "<stream>") -> Iterator[RawAddress2012]:
    for elem in iter_elements(stream, (ADDRESS_TAG,), source=source):
        yield _decode_address(elem, source=source)


def _decode_component(elem: etree._Element, *, source: str) -> ComponentInfo:
    texts = collect_leaf_texts(elem)
    name = local_name(elem)
    teryt_id = first_text(texts, "idTERYT")

    if name == ADMIN_UNIT_TAG:
        level = first_text(texts, "poziom")
        if level not in ADMIN_LEVELS:
            raise MalformedInputError(
                f"Unexpected administrative level: {level!r}",
                source=source,
                element=name,
                line=elem.sourceline,
            )
        return ComponentInfo(kind=ADMIN_LEVELS[level], name=first_text(texts, "nazwa"), teryt_id=teryt_id)

    if name == LOCALITY_TAG:
        return ComponentInfo(kind="locality", name=first_text(texts, "nazwa"), teryt_id=teryt_id)

    parts = [first_text(texts, part) for part in STREET_NAME_PARTS]
    street_name = " ".join(part for part in parts if part)
    return ComponentInfo(kind="street", name=street_name or None, teryt_id=teryt_id)


def build_component_index(stream: IO[bytes], *, source: str = "<stream>") -> dict[str, ComponentInfo]:
    """Collect administrative unit, locality and street objects keyed by their href URI."""
    index: dict[str, ComponentInfo] = {}
    for elem in iter_elements(stream, COMPONENT_TAGS, source=source):
        gml_id = get_attribute(elem, "id", source=source)
        index[COMPONENT_URI_PREFIX + gml_id] = _decode_component(elem, source=source)
    return index
