"""Streaming XML helpers shared by the PRG schema parsers."""

from __future__ import annotations

import math
from typing import IO, Iterable, Iterator

from lxml import etree

from prg_convert.common.errors import MalformedInputError


def local_name(elem: etree._Element) -> str:
    tag = elem.tag
    if not isinstance(tag, str):
        return ""
    return tag.rpartition("}")[2]


def iter_elements(stream: IO[bytes], local_names: Iterable[str], *, source: str) -> Iterator[etree._Element]:
    """Yield fully built elements whose local name is in ``local_names``.

    The tree is pruned as parsing advances. Yielded elements and finished
    children of the document root are cleared once the consumer resumes, and
    their already processed siblings are detached, so memory stays bounded
    for multi-GB files.
    """
    wanted = frozenset(local_names)
    depth = 0
    context = etree.iterparse(stream, events=("start", "end"), huge_tree=True, resolve_entities=False)
    try:
        for event, elem in context:
            if event == "start":
                depth += 1
                continue
            depth -= 1
            matched = local_name(elem) in wanted
            if matched:
                yield elem
            if matched or depth == 1:
                elem.clear(keep_tail=True)
                parent = elem.getparent()
                if parent is not None:
                    while elem.getprevious() is not None:
                        del parent[0]
    except etree.XMLSyntaxError as exc:
        raise MalformedInputError(f"XML syntax error: {exc.msg}", source=source, line=exc.lineno) from exc


def text_or_none(elem: etree._Element | None) -> str | None:
    if elem is None or elem.text is None:
        return None
    text = elem.text.strip()
    return text or None


def collect_leaf_texts(elem: etree._Element) -> dict[str, list[str | None]]:
    """Map local name to the texts of every leaf descendant, in document order."""
    out: dict[str, list[str | None]] = {}
    for child in elem.iterdescendants():
        if len(child):
            continue
        name = local_name(child)
        if not name:
            continue
        out.setdefault(name, []).append(text_or_none(child))
    return out


def first_text(texts: dict[str, list[str | None]], name: str) -> str | None:
    values = texts.get(name)
    if not values:
        return None
    return values[0]


def get_attribute(elem: etree._Element, name: str, *, source: str) -> str:
    for key, value in elem.attrib.items():
        if key.rpartition("}")[2] == name:
            return value
    raise MalformedInputError(
        f"Missing attribute {name!r}",
        source=source,
        element=local_name(elem),
        line=elem.sourceline,
    )


def parse_gml_pos(
    text: str | None,
    *,
    source: str,
    line: int | None = None,
) -> tuple[float, float] | None:
    """Parse a ``gml:pos`` body into its two numbers, in source order.

    Returns ``None`` for an absent position or one holding NaN.
    """
    if text is None:
        return None
    parts = text.split()
    if len(parts) != 2:
        raise MalformedInputError(
            f"gml:pos must hold exactly two numbers, got {text!r}",
            source=source,
            element="pos",
            line=line,
        )
    try:
        first, second = float(parts[0]), float(parts[1])
    except ValueError as exc:
        raise MalformedInputError(
            f"gml:pos holds a non-numeric value: {text!r}",
            source=source,
            element="pos",
            line=line,
        ) from exc
    if math.isnan(first) or math.isnan(second):
        return None
    return first, second
