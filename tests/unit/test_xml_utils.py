from __future__ import annotations

import io

import pytest

from prg_convert.common.errors import MalformedInputError
from prg_convert.parsers.xml_utils import get_attribute, iter_elements, local_name, parse_gml_pos


def test_parse_gml_pos_returns_pair_in_source_order():
    assert parse_gml_pos("487000.5 637000.25", source="t") == (487000.5, 637000.25)


def test_parse_gml_pos_handles_extra_whitespace_and_missing_value():
    assert parse_gml_pos("  1.5\n\t2.5 ", source="t") == (1.5, 2.5)
    assert parse_gml_pos(None, source="t") is None


def test_parse_gml_pos_nan_means_no_position():
    assert parse_gml_pos("NaN NaN", source="t") is None


@pytest.mark.parametrize("text", ["1.0", "1.0 2.0 3.0", "x 2.0"])
def test_parse_gml_pos_rejects_malformed_bodies(text):
    with pytest.raises(MalformedInputError) as exc_info:
        parse_gml_pos(text, source="file.xml", line=7)
    assert "file.xml" in str(exc_info.value)
    assert exc_info.value.line == 7


def test_iter_elements_matches_local_names_across_prefixes():
    doc = b"""<root xmlns:a="urn:a" xmlns:b="urn:b">
      <a:wrap><a:item>1</a:item></a:wrap>
      <b:item>2</b:item>
      <a:other>3</a:other>
    </root>"""
    texts = [elem.text for elem in iter_elements(io.BytesIO(doc), ("item",), source="mem")]
    assert texts == ["1", "2"]


def test_iter_elements_wraps_syntax_errors_with_line():
    doc = b"<root>\n<item>1</item>\n<item>2</root>"
    with pytest.raises(MalformedInputError) as exc_info:
        list(iter_elements(io.BytesIO(doc), ("item",), source="broken.xml"))
    assert exc_info.value.error_code == "MALFORMED_INPUT"
    assert exc_info.value.source == "broken.xml"
    assert exc_info.value.line is not None


def test_get_attribute_by_local_name_and_missing_attribute():
    doc = b'<root xmlns:x="http://www.w3.org/1999/xlink"><ref x:href="urn:1"/><ref/></root>'
    hrefs = []
    for elem in iter_elements(io.BytesIO(doc), ("ref",), source="mem"):
        assert local_name(elem) == "ref"
        if elem.attrib:
            hrefs.append(get_attribute(elem, "href", source="mem"))
        else:
            with pytest.raises(MalformedInputError):
                get_attribute(elem, "href", source="mem")
    assert hrefs == ["urn:1"]
