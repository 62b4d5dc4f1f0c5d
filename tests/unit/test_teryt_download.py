from __future__ import annotations

import base64
from datetime import date
from pathlib import Path

import pytest
from lxml import etree

from prg_convert.common.config_loader import TerytServiceConfig
from prg_convert.common.errors import ConfigError
from prg_convert.common.http import HttpRequestError
from prg_convert.sources.teryt_download import TERC_ACTION, build_terc_request, download_terc, extract_terc_archive

CONFIG = TerytServiceConfig(
    service_url="https://uslugaterytws1test.stat.gov.pl/TerytWs1.svc",
    username_env="TERYT_USERNAME",
    password_env="TERYT_PASSWORD",
    timeout_seconds=30,
)


def _soap_response(payload: bytes) -> bytes:
    encoded = base64.b64encode(payload).decode("ascii")
    return f"""<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope">
      <s:Body>
        <PobierzKatalogTERCResponse xmlns="http://tempuri.org/">
          <PobierzKatalogTERCResult xmlns:a="http://schemas.datacontract.org/2004/07/TerytUslugaWs1">
            <a:nazwa_pliku>TERC_Urzedowy_2026-01-10.zip</a:nazwa_pliku>
            <a:opis>Katalog TERC</a:opis>
            <a:plik_zawartosc>{encoded}</a:plik_zawartosc>
          </PobierzKatalogTERCResult>
        </PobierzKatalogTERCResponse>
      </s:Body>
    </s:Envelope>""".encode("utf-8")


class FakeClient:
    def __init__(self, response: bytes):
        self.response = response
        self.calls = []

    def post_xml(self, url, *, body, headers=None, timeout=None):
        self.calls.append({"url": url, "body": body, "headers": headers, "timeout": timeout})
        return self.response


def test_build_terc_request_carries_credentials_and_action():
    body = build_terc_request(CONFIG.service_url, "TestPubliczny", "1234<abcd>", date(2026, 1, 10))
    root = etree.fromstring(body.encode("utf-8"))
    texts = {etree.QName(elem).localname: elem.text for elem in root.iter()}

    assert texts["Username"] == "TestPubliczny"
    assert texts["Password"] == "1234<abcd>"
    assert texts["Action"] == TERC_ACTION
    assert texts["To"] == CONFIG.service_url
    assert texts["DataStanu"] == "2026-01-10"


def test_extract_terc_archive_decodes_payload():
    assert extract_terc_archive(_soap_response(b"PK\x03\x04zip")) == b"PK\x03\x04zip"


def test_extract_terc_archive_reports_fault():
    fault = b"""<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope"><s:Body><s:Fault>
      <s:Reason><s:Text>At least one security token could not be validated.</s:Text></s:Reason>
    </s:Fault></s:Body></s:Envelope>"""
    with pytest.raises(HttpRequestError, match="security token"):
        extract_terc_archive(fault)


def test_extract_terc_archive_without_content():
    with pytest.raises(HttpRequestError):
        extract_terc_archive(b"<empty/>")


def test_download_terc_requires_credentials(tmp_path: Path):
    with pytest.raises(ConfigError, match="TERYT_USERNAME"):
        download_terc(CONFIG, tmp_path, client=FakeClient(b""), env={})


def test_download_terc_writes_archive(tmp_path: Path):
    client = FakeClient(_soap_response(b"PK\x03\x04zip"))
    env = {"TERYT_USERNAME": "TestPubliczny", "TERYT_PASSWORD": "1234abcd"}

    out = download_terc(CONFIG, tmp_path / "teryt", client=client, state_date=date(2026, 1, 10), env=env)

    assert out == tmp_path / "teryt" / "TERC_2026-01-10.zip"
    assert out.read_bytes() == b"PK\x03\x04zip"
    assert client.calls[0]["url"] == CONFIG.service_url
    assert TERC_ACTION in client.calls[0]["headers"]["Content-Type"]
    assert client.calls[0]["timeout"].read == 30
