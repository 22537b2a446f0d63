from __future__ import annotations

import asyncio

import httpx
import pytest

from covidtracker.connectors.client import MAX_RETRIES, SourceAPIError, SourceClient


def _client(handler) -> SourceClient:
    return SourceClient(transport=httpx.MockTransport(handler), retry_base_delay=0)


async def _get_json(client: SourceClient, url: str):
    try:
        return await client.get_json(url)
    finally:
        await client.close()


async def _get_text(client: SourceClient, url: str):
    try:
        return await client.get_text(url)
    finally:
        await client.close()


def test_get_json_success():
    client = _client(lambda request: httpx.Response(200, json=[{"ok": True}]))

    assert asyncio.run(_get_json(client, "https://example.com/a.json")) == [{"ok": True}]


def test_get_text_returns_raw_body():
    client = _client(lambda request: httpx.Response(200, text="date,location\n"))

    assert asyncio.run(_get_text(client, "https://example.com/a.csv")) == "date,location\n"


def test_server_errors_are_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        if len(calls) < MAX_RETRIES:
            return httpx.Response(503)
        return httpx.Response(200, json=[])

    assert asyncio.run(_get_json(_client(handler), "https://example.com/a.json")) == []
    assert len(calls) == MAX_RETRIES


def test_client_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(404)

    with pytest.raises(SourceAPIError) as excinfo:
        asyncio.run(_get_json(_client(handler), "https://example.com/missing.json"))

    assert excinfo.value.status_code == 404
    assert len(calls) == 1


def test_persistent_rate_limit_raises_after_retries():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(429)

    with pytest.raises(SourceAPIError) as excinfo:
        asyncio.run(_get_json(_client(handler), "https://example.com/a.json"))

    assert excinfo.value.status_code == 429
    assert len(calls) == MAX_RETRIES


def test_connection_errors_raise_after_retries():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(SourceAPIError, match="Connection failed"):
        asyncio.run(_get_json(_client(handler), "https://example.com/a.json"))


def test_invalid_json_raises():
    client = _client(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(SourceAPIError, match="Invalid JSON"):
        asyncio.run(_get_json(client, "https://example.com/a.json"))
