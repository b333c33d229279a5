"""
Unit Tests — Extraction Client
═══════════════════════════════
Tests for biograph/llm/client.py

Coverage:
  ✅ POST {base_url}/chat/completions with bearer auth, model, temperature,
     response_format and the system + user messages
  ✅ Trailing slash on the base URL is tolerated
  ✅ 2xx → choices[0].message.content
  ✅ 401 → ExtractionApiError (status kept, credential absent)
  ✅ Long error bodies truncated to the limit + "..."
  ✅ Credential echoed in an error body is scrubbed
  ✅ Connection failure → ExtractionTransportError
  ✅ Malformed envelope / non-string content → None
  ✅ Credential never appears in log output
"""

from __future__ import annotations

import json
import logging

import httpx
import pytest

from biograph.core.exceptions import ExtractionApiError, ExtractionTransportError


async def _complete(client, credential, base_url="https://llm.test/v1"):
    return await client.complete(
        system_prompt="SYSTEM",
        user_content="USER",
        credential=credential,
        model="gpt-4o-mini",
        base_url=base_url,
    )


@pytest.mark.unit
@pytest.mark.llm
class TestExtractionClient:

    async def test_request_shape(self, llm_client, completion, credential):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return completion('{"summary": "ok"}')

        raw = await _complete(llm_client(handler, temperature=0.2), credential)

        assert raw == '{"summary": "ok"}'
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://llm.test/v1/chat/completions"
        assert request.headers["Authorization"] == f"Bearer {credential}"

        body = json.loads(request.content)
        assert body["model"] == "gpt-4o-mini"
        assert body["temperature"] == 0.2
        assert body["response_format"] == {"type": "json_object"}
        assert body["messages"] == [
            {"role": "system", "content": "SYSTEM"},
            {"role": "user",   "content": "USER"},
        ]

    async def test_trailing_slash_on_base_url(self, llm_client, completion, credential):
        urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return completion("{}")

        await _complete(llm_client(handler), credential, base_url="http://localhost:11434/v1/")

        assert urls == ["http://localhost:11434/v1/chat/completions"]

    async def test_unauthorized_raises_api_error(self, llm_client, credential):
        client = llm_client(lambda r: httpx.Response(401, json={"error": {"message": "bad key"}}))

        with pytest.raises(ExtractionApiError) as exc_info:
            await _complete(client, credential)

        err = exc_info.value
        assert err.status_code == 401
        assert "401" in str(err)
        assert credential not in str(err)
        assert "bad key" in err.body_excerpt

    async def test_long_error_body_is_truncated(self, llm_client, credential):
        client = llm_client(lambda r: httpx.Response(500, text="x" * 1000))

        with pytest.raises(ExtractionApiError) as exc_info:
            await _complete(client, credential)

        excerpt = exc_info.value.body_excerpt
        assert excerpt == "x" * 200 + "..."

    async def test_credential_in_error_body_is_redacted(self, llm_client, credential):
        client = llm_client(
            lambda r: httpx.Response(403, text=f"Incorrect API key provided: {credential}"),
        )

        with pytest.raises(ExtractionApiError) as exc_info:
            await _complete(client, credential)

        assert credential not in exc_info.value.body_excerpt
        assert "[REDACTED]" in exc_info.value.body_excerpt

    async def test_connect_error_raises_transport_error(self, llm_client, credential):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExtractionTransportError) as exc_info:
            await _complete(llm_client(handler), credential)

        assert exc_info.value.url == "https://llm.test/v1/chat/completions"
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    async def test_timeout_raises_transport_error(self, llm_client, credential):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ExtractionTransportError):
            await _complete(llm_client(handler), credential)

    @pytest.mark.parametrize("body", [
        {"choices": []},
        {"unexpected": True},
        {"choices": [{"message": {}}]},
    ])
    async def test_malformed_envelope_returns_none(self, llm_client, credential, body):
        client = llm_client(lambda r: httpx.Response(200, json=body))
        assert await _complete(client, credential) is None

    async def test_non_json_success_body_returns_none(self, llm_client, credential):
        client = llm_client(lambda r: httpx.Response(200, text="<html>gateway</html>"))
        assert await _complete(client, credential) is None

    async def test_non_string_content_returns_none(self, llm_client, completion, credential):
        client = llm_client(lambda r: completion({"categories": {}}))
        assert await _complete(client, credential) is None

    async def test_credential_never_logged(self, llm_client, credential, caplog):
        caplog.set_level(logging.DEBUG)
        client = llm_client(lambda r: httpx.Response(401, text=f"bad token {credential}"))

        with pytest.raises(ExtractionApiError):
            await _complete(client, credential)

        assert caplog.records
        assert credential not in caplog.text
