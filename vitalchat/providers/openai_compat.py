import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import httpx

from vitalchat.errors import ProviderError
from vitalchat.providers.base import ConnectionStatus, HTTPBackend
from vitalchat.providers.messages import ChatMessage

log = logging.getLogger(__name__)


def parse_sse_line(line: str) -> Optional[str]:
    """Extract the content delta from one ``data: {...}`` SSE line.

    Returns None for non-data lines, the ``[DONE]`` sentinel, chunks
    without content, and malformed JSON (which is logged and dropped).
    """
    if not line.startswith("data: "):
        return None
    data = line[6:].strip()
    if data == "[DONE]":
        return None
    try:
        chunk = json.loads(data)
    except json.JSONDecodeError:
        log.warning("dropping malformed stream line: %.80s", data)
        return None
    if not isinstance(chunk, dict):
        return None

    choices = chunk.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None
    delta = choices[0].get("delta") or {}
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


def is_chat_model(model_id: str) -> bool:
    return (
        "gpt" in model_id
        and "instruct" not in model_id
        and "-vision-" not in model_id
    )


class OpenAICompatBackend(HTTPBackend):
    """Backend for OpenAI-compatible ``/chat/completions`` streaming (OpenAI, LM Studio)."""

    def __init__(
        self,
        api_url: str,
        model: str,
        api_key: str = "",
        *,
        name: str = "openai",
        default_models: Optional[list[str]] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 300.0,
    ):
        super().__init__(api_url, model, client=client, timeout=timeout)
        self.name = name
        self._api_key = api_key
        self._default_models = list(default_models or [])

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def stream_deltas(
        self,
        messages: list[ChatMessage],
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        payload = {
            "model": self.model or "gpt-3.5-turbo",
            "messages": [m.to_payload() for m in messages],
            "stream": True,
        }
        url = f"{self.api_url}/chat/completions"
        log.debug("POST %s model=%s messages=%d", url, payload["model"], len(messages))

        try:
            async with self._client.stream(
                "POST", url, json=payload, headers=self._headers()
            ) as response:
                if response.is_error:
                    await response.aread()
                    raise ProviderError(
                        self.name, response.status_code, _error_message(response)
                    )
                async for line in response.aiter_lines():
                    if cancel is not None and cancel.is_set():
                        break
                    delta = parse_sse_line(line)
                    if delta:
                        yield delta
        except httpx.HTTPError as exc:
            raise ProviderError(self.name, None, str(exc)) from exc

    async def list_models(self) -> list[str]:
        models: list[str] = []
        try:
            response = await self._client.get(
                f"{self.api_url}/models", headers=self._headers()
            )
            if response.is_success:
                body = response.json()
                data = body.get("data") if isinstance(body, dict) else None
                if isinstance(data, list):
                    models = [m["id"] for m in data if isinstance(m, dict) and "id" in m]
                if self.name == "openai":
                    models = [m for m in models if is_chat_model(m)]
        except (httpx.HTTPError, ValueError) as exc:
            log.warning("failed to list %s models: %s", self.name, exc)

        if not models:
            models = list(self._default_models)
        return models

    async def test_connection(self) -> ConnectionStatus:
        try:
            response = await self._client.get(
                f"{self.api_url}/models", headers=self._headers()
            )
        except httpx.HTTPError as exc:
            return ConnectionStatus(False, str(exc) or "Network error")
        if response.is_success:
            return ConnectionStatus(True, "Connected")
        return ConnectionStatus(False, _error_message(response) or "Connection failed")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return response.reason_phrase
