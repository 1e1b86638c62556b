import json

import httpx
import pytest

from oracle_client import OracleCallError, OracleClient


def _envelope(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _client(handler, **kw):
    kw.setdefault("api_key", "test-key")
    kw.setdefault("api_url", "https://oracle.test/v1/chat/completions")
    kw.setdefault("model", "test-model")
    return OracleClient(transport=httpx.MockTransport(handler), **kw)


def test_payload_omits_temperature_when_unset():
    c = OracleClient(api_key="k", model="m")
    assert "temperature" not in c.build_payload("sys", "user")
    p = c.build_payload("sys", "user", 0.2)
    assert p["temperature"] == 0.2
    assert p["model"] == "m"
    assert p["messages"] == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "user"},
    ]


@pytest.mark.asyncio
async def test_complete_returns_first_choice_content():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_envelope("hello"))

    c = _client(handler)
    try:
        out = await c.complete("sys", "user text", temperature=0.8, op="comment")
    finally:
        await c.aclose()

    assert out == "hello"
    assert seen["auth"] == "Bearer test-key"
    assert seen["body"]["model"] == "test-model"
    assert seen["body"]["temperature"] == 0.8
    assert seen["body"]["messages"][1]["content"] == "user text"


@pytest.mark.asyncio
async def test_client_is_created_once_and_reused():
    c = _client(lambda r: httpx.Response(200, json=_envelope("x")))
    first = await c.get_async_client()
    second = await c.get_async_client()
    assert first is second
    await c.aclose()
    assert c._client is None


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [400, 429, 500, 503])
async def test_non_success_status_raises(status):
    c = _client(lambda r: httpx.Response(status, text="upstream says no"))
    with pytest.raises(OracleCallError):
        await c.complete("s", "u", op="judge")
    await c.aclose()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"choices": []},
        {"choices": [{"message": {}}]},
        {"choices": [{"message": {"content": None}}]},
        {"error": "nope"},
    ],
)
async def test_malformed_envelope_raises(body):
    c = _client(lambda r: httpx.Response(200, json=body))
    with pytest.raises(OracleCallError):
        await c.complete("s", "u")
    await c.aclose()


@pytest.mark.asyncio
async def test_non_json_body_raises():
    c = _client(lambda r: httpx.Response(200, text="<html>gateway</html>"))
    with pytest.raises(OracleCallError):
        await c.complete("s", "u")
    await c.aclose()


@pytest.mark.asyncio
async def test_network_error_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    c = _client(handler)
    with pytest.raises(OracleCallError):
        await c.complete("s", "u", op="sentiment")
    await c.aclose()


@pytest.mark.asyncio
async def test_timeout_is_wrapped():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    c = _client(handler)
    with pytest.raises(OracleCallError):
        await c.complete("s", "u")
    await c.aclose()


@pytest.mark.asyncio
async def test_missing_credential_fails_without_request():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=_envelope("x"))

    c = _client(handler, api_key="")
    with pytest.raises(OracleCallError):
        await c.complete("s", "u")
    assert calls == []
