"""TERC catalogue download from the TERYT web service (SOAP 1.2, WS-Security)."""

from __future__ import annotations

import base64
import binascii
import os
from datetime import date
from pathlib import Path
from typing import Mapping

from lxml import etree

from prg_convert.common.config_loader import TerytServiceConfig
from prg_convert.common.errors import ConfigError
from prg_convert.common.fs import ensure_dir
from prg_convert.common.http import HttpClient, HttpRequestError, TimeoutConfig
from prg_convert.parsers.xml_utils import local_name

SOAP_NS = "http://www.w3.org/2003/05/soap-envelope"
WSA_NS = "http://www.w3.org/2005/08/addressing"
WSSE_NS = "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
PASSWORD_TEXT_TYPE = (
    "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-username-token-profile-1.0#PasswordText"
)
TEMPURI_NS = "http://tempuri.org/"
TERC_ACTION = "http://tempuri.org/ITerytWs1/PobierzKatalogTERC"


def _credentials(config: TerytServiceConfig, env: Mapping[str, str]) -> tuple[str, str]:
    username = env.get(config.username_env)
    password = env.get(config.password_env)
    if not username or not password:
        raise ConfigError(
            f"TERYT download needs credentials in ${config.username_env} and ${config.password_env}"
        )
    return username, password


def build_terc_request(service_url: str, username: str, password: str, state_date: date) -> str:
    envelope = etree.Element(f"{{{SOAP_NS}}}Envelope", nsmap={"soap": SOAP_NS, "tem": TEMPURI_NS})
    header = etree.SubElement(envelope, f"{{{SOAP_NS}}}Header")

    security = etree.SubElement(header, f"{{{WSSE_NS}}}Security", nsmap={"wsse": WSSE_NS})
    token = etree.SubElement(security, f"{{{WSSE_NS}}}UsernameToken")
    etree.SubElement(token, f"{{{WSSE_NS}}}Username").text = username
    password_elem = etree.SubElement(token, f"{{{WSSE_NS}}}Password", Type=PASSWORD_TEXT_TYPE)
    password_elem.text = password

    etree.SubElement(header, f"{{{WSA_NS}}}Action", nsmap={"wsa": WSA_NS}).text = TERC_ACTION
    etree.SubElement(header, f"{{{WSA_NS}}}To", nsmap={"wsa": WSA_NS}).text = service_url

    body = etree.SubElement(envelope, f"{{{SOAP_NS}}}Body")
    request = etree.SubElement(body, f"{{{TEMPURI_NS}}}PobierzKatalogTERC")
    etree.SubElement(request, f"{{{TEMPURI_NS}}}DataStanu").text = state_date.isoformat()
    return etree.tostring(envelope, encoding="unicode")


def extract_terc_archive(payload: bytes) -> bytes:
    """Return the decoded ZIP carried in the ``plik_zawartosc`` element of a response."""
    try:
        root = etree.fromstring(payload)
    except etree.XMLSyntaxError as exc:
        raise HttpRequestError(f"Invalid SOAP response: {exc}") from exc

    for elem in root.iter():
        name = local_name(elem)
        if name == "Fault":
            reason = " ".join(text.strip() for text in elem.itertext() if text.strip())
            raise HttpRequestError(f"TERYT service fault: {reason}")
        if name == "plik_zawartosc" and elem.text:
            try:
                return base64.b64decode(elem.text.strip(), validate=True)
            except (binascii.Error, ValueError) as exc:
                raise HttpRequestError("TERYT response carries invalid base64 content") from exc
    raise HttpRequestError("TERYT response carries no plik_zawartosc element")


def download_terc(
    config: TerytServiceConfig,
    destination_dir: Path,
    *,
    client: HttpClient | None = None,
    state_date: date | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    username, password = _credentials(config, os.environ if env is None else env)
    state_date = state_date or date.today()
    body = build_terc_request(config.service_url, username, password, state_date)
    headers = {"Content-Type": f'application/soap+xml; charset=utf-8; action="{TERC_ACTION}"'}
    timeout = TimeoutConfig(read=config.timeout_seconds)

    if client is None:
        with HttpClient(timeout=timeout) as owned_client:
            payload = owned_client.post_xml(config.service_url, body=body, headers=headers)
    else:
        payload = client.post_xml(config.service_url, body=body, headers=headers, timeout=timeout)

    archive = extract_terc_archive(payload)
    ensure_dir(destination_dir)
    out_path = destination_dir / f"TERC_{state_date.isoformat()}.zip"
    out_path.write_bytes(archive)
    return out_path
