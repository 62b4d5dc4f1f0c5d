from __future__ import annotations

import pytest
import requests

from prg_convert.common.http import HttpClient, HttpRequestError, RetryConfig, RetryableHttpError


class FakeResponse:
    def __init__(self, status_code: int, content: bytes = b""):
        self.status_code = status_code
        self.content = content


def test_http_post_xml_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    seen = {}

    def fake_request(**kwargs):
        seen.update(kwargs)
        return FakeResponse(200, b"<ok/>")

    monkeypatch.setattr(client.session, "request", fake_request)
    payload = client.post_xml("https://example.com/svc", body="<req/>", headers={"X-Test": "1"})

    assert payload == b"<ok/>"
    assert seen["method"] == "POST"
    assert seen["data"] == b"<req/>"
    assert seen["headers"]["Content-Type"].startswith("application/soap+xml")
    assert seen["headers"]["X-Test"] == "1"
    assert "prg-convert" in seen["headers"]["User-Agent"]


def test_http_retryable_status_raises_retryable_error(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: FakeResponse(503))

    with pytest.raises(RetryableHttpError):
        client.request_bytes("GET", "https://example.com")


def test_http_retries_until_success(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    responses = iter([FakeResponse(502), FakeResponse(200, b"done")])
    monkeypatch.setattr(client.session, "request", lambda **_kwargs: next(responses))

    assert client.request_bytes("GET", "https://example.com") == b"done"


def test_http_connection_error_is_retryable(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=1))

    def boom(**_kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client.session, "request", boom)
    with pytest.raises(RetryableHttpError):
        client.request_bytes("GET", "https://example.com")


def test_http_client_error_is_not_retried(monkeypatch):
    client = HttpClient(retry=RetryConfig(max_attempts=3, multiplier=0.0, max_wait=0.0))
    calls = []

    def fake_request(**_kwargs):
        calls.append(1)
        return FakeResponse(401)

    monkeypatch.setattr(client.session, "request", fake_request)
    with pytest.raises(HttpRequestError) as exc_info:
        client.request_bytes("GET", "https://example.com")
    assert not isinstance(exc_info.value, RetryableHttpError)
    assert len(calls) == 1
