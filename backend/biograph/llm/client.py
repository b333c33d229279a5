"""
Extraction Client — one chat-completions call per chunk

  POST {base_url}/chat/completions
  Authorization: Bearer <caller credential>

  {
    "model": "...",
    "messages": [{"role": "system", ...}, {"role": "user", ...}],
    "temperature": 0.2,
    "response_format": {"type": "json_object"}
  }

Works against any OpenAI-compatible endpoint (OpenAI, Azure-style gateways,
Ollama / vLLM / LM Studio servers) because only the base URL changes.

Error mapping:
  httpx.TransportError (connect, DNS, timeout, protocol) → ExtractionTransportError
  non-2xx status                                           → ExtractionApiError
  2xx without choices[0].message.content                   → None (parse failure)

No retries here. A retry policy, if any, belongs to whoever owns the run.

Credential handling:
  The credential is a per-call argument. It is never stored on the client,
  never logged, and scrubbed from any error-body excerpt.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from biograph.core.exceptions import ExtractionApiError, ExtractionTransportError
from biograph.observability.tracing import traced

logger = logging.getLogger(__name__)

_REDACTED = "[REDACTED]"


def _body_excerpt(body: str, limit: int, credential: str) -> str:
    """First `limit` chars of an error body, with the credential scrubbed."""
    if credential:
        body = body.replace(credential, _REDACTED)
    return body[:limit] + "..." if len(body) > limit else body


def _message_content(response: httpx.Response) -> str | None:
    """Pull choices[0].message.content out of a chat-completions envelope."""
    try:
        envelope = response.json()
        content = envelope["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.warning(
            "ExtractionClient | unexpected response envelope: %s: %s",
            type(exc).__name__, exc,
        )
        return None

    if not isinstance(content, str):
        logger.warning(
            "ExtractionClient | message content is %s, expected a string",
            type(content).__name__,
        )
        return None
    return content


class ExtractionClient:
    """
    Thin async client for OpenAI-compatible chat completions.

    Usage:
        client = ExtractionClient()
        raw = await client.complete(system, user, credential, "gpt-4o-mini",
                                    "https://api.openai.com/v1")

    Pass `http_client` to share a connection pool across calls (or to inject
    an httpx.MockTransport in tests). Otherwise a short-lived AsyncClient is
    opened per call with the configured timeout.
    """

    def __init__(
        self,
        http_client:      httpx.AsyncClient | None = None,
        temperature:      float | None = None,
        timeout_seconds:  float | None = None,
        error_body_limit: int | None   = None,
    ) -> None:
        from biograph.core.config import settings

        self._http             = http_client
        self._temperature      = settings.llm_temperature if temperature is None else temperature
        self._timeout          = settings.llm_timeout_seconds if timeout_seconds is None else timeout_seconds
        self._error_body_limit = (
            settings.llm_error_body_limit if error_body_limit is None else error_body_limit
        )

    def build_payload(self, system_prompt: str, user_content: str, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user",   "content": user_content},
            ],
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }

    @traced("llm.chat_completion")
    async def complete(
        self,
        system_prompt: str,
        user_content:  str,
        credential:    str,
        model:         str,
        base_url:      str,
    ) -> str | None:
        """
        Send one chat-completions request and return the assistant's raw text.

        Returns:
            The message content string, or None when the 2xx envelope has no
            usable content.

        Raises:
            ExtractionTransportError: the endpoint could not be reached.
            ExtractionApiError:       the endpoint answered with a non-2xx status.
        """
        url     = f"{base_url.rstrip('/')}/chat/completions"
        payload = self.build_payload(system_prompt, user_content, model)
        headers = {"Authorization": f"Bearer {credential}"}

        logger.debug("ExtractionClient | POST %s model=%s", url, model)
        try:
            if self._http is not None:
                response = await self._http.post(url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as http:
                    response = await http.post(url, json=payload, headers=headers)
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            logger.error(
                "ExtractionClient | failed to call LLM API at %s: %s", url, type(exc).__name__,
            )
            raise ExtractionTransportError(url, exc) from exc

        if not response.is_success:
            excerpt = _body_excerpt(response.text, self._error_body_limit, credential)
            logger.error(
                "ExtractionClient | LLM API returned %d: %s", response.status_code, excerpt,
            )
            raise ExtractionApiError(response.status_code, excerpt)

        return _message_content(response)
