import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import httpx

from vitalchat.errors import ProviderError
from vitalchat.providers.base import ConnectionStatus, HTTPBackend
from vitalchat.providers.messages import ChatMessage

log = logging.getLogger(__name__)


def parse_ndjson_line(line: str) -> Optional[str]:
    """Extract ``message.content`` from one line of Ollama's NDJSON stream."""
    text = line.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        log.warning("dropping malformed stream line: %.80s", text)
        return None
    if not isinstance(data, dict):
        return None
    message = data.get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) and content else None


class OllamaBackend(HTTPBackend):
    """Backend for a local Ollama server (``/api/chat``)."""

    name = "ollama"

    def __init__(
        self,
        api_url: str,
        model: str,
        *,
        default_models: Optional[list[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 300.0,
    ):
        super().__init__(api_url, model, client=client, timeout=timeout)
        self._default_models = list(default_models or [])

    async def stream_deltas(
        self,
        messages: list[ChatMessage],
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        payload = {
            "model": self.model,
            "messages": [m.to_payload() for m in messages],
            "stream": True,
        }
        url = f"{self.api_url}/api/chat"
        log.debug("POST %s model=%s messages=%d", url, self.model, len(messages))

        try:
            async with self._client.stream("POST", url, json=payload) as response:
                if response.is_error:
                    await response.aread()
                    raise ProviderError(
                        self.name, response.status_code, response.reason_phrase
                    )
                async for line in response.aiter_lines():
                    if cancel is not None and cancel.is_set():
                        break
                    delta = parse_ndjson_line(line)
                    if delta:
                        yield delta
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc

    async def list_models(self) -> list[str]:
        models: list[str] = []
        try:
            response = await self._client.get(f"{self.api_url}/api/tags")
            if response.is_success:
                body = response.json()
                entries = body.get("models") if isinstance(body, dict) else None
                if isinstance(entries, list):
                    models = [m["name"] for m in entries if isinstance(m, dict) and "name" in m]
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("failed to list ollama models: %s", exc)

        if not models:
            models = list(self._default_models)
        return models

    async def test_connection(self) -> ConnectionStatus:
        try:
            response = await self._client.get(f"{self.api_url}/api/tags")
        except httpx.HTTPError as exc:
            return ConnectionStatus(False, str(exc) or "Network error")
        if response.is_success:
            return ConnectionStatus(True, "Connected")
        return ConnectionStatus(False, "Connection failed")
