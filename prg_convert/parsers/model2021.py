"""Streaming decoder for the 2021 PRG address schema (GML application schema)."""

from __future__ import annotations

from typing import IO, Iterator

from lxml import etree

from prg_convert.common.errors import MalformedInputError
from prg_convert.common.models import RawAddress2021
from prg_convert.parsers.xml_utils import collect_leaf_texts, first_text, iter_elements, parse_gml_pos

ADDRESS_TAG = "AD_PunktAdresowy"


def _required(texts: dict, name: str, elem: etree._Element, *, source: str) -> str:
    value = first_text(texts, name)
    if value is None:
        raise MalformedInputError(
            f"Address without {name}",
            source=source,
            element=ADDRESS_TAG,
            line=elem.sourceline,
        )
    return value


def _decode_address(elem: etree._Element, *, source: str) -> RawAddress2021:
    texts = collect_leaf_texts(elem)
    return RawAddress2021(
        source=source,
        lokalny_id=_required(texts, "lokalnyId", elem, source=source),
        przestrzen_nazw=first_text(texts, "przestrzenNazw"),
        wersja_id=first_text(texts, "wersjaId"),
        poczatek_wersji_obiektu=first_text(texts, "poczatekWersjiObiektu"),
        data_nadania=first_text(texts, "dataNadania"),
        wazny_do=first_text(texts, "waznyDo"),
        kod_terytorialny=_required(texts, "kodTerytorialny", elem, source=source),
        miejscowosc=first_text(texts, "miejscowosc"),
        teryt_miejscowosc=first_text(texts, "idTERYTMiejscowosci"),
        czesc_miejscowosci=first_text(texts, "czescMiejscowosci"),
        nazwa_glowna_ulicy=first_text(texts, "nazwaGlownaUlicy"),
        nazwa_czesc_ulicy=first_text(texts, "nazwaCzescUlicy"),
        typ_ulicy=first_text(texts, "typUlicy"),
        teryt_ulica=first_text(texts, "idTERYTUlicy"),
        numer_porzadkowy=first_text(texts, "numerPorzadkowy"),
        kod_pocztowy=first_text(texts, "kodPocztowy"),
        status=first_text(texts, "status"),
        raw_pos=parse_gml_pos(first_text(texts, "pos"), source=source, line=elem.sourceline),
    )


def parse_model2021(stream: IO[bytes], *, source: str = "<stream>") -> Iterator[RawAddress2021]:
    for elem in iter_elements(stream, (ADDRESS_TAG,), source=source):
        yield _decode_address(elem, source=source)
