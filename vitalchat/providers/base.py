import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import httpx

from vitalchat.providers.messages import ChatMessage


@dataclass
class ConnectionStatus:
    success: bool
    message: str


class ChatBackend(ABC):
    """Abstract interface for a streaming chat model provider.

    ``stream_deltas`` is the fragment source: it hides the provider's wire
    envelope and yields decoded text deltas only.
    """

    name: str = "backend"

    @abstractmethod
    async def stream_deltas(
        self,
        messages: list[ChatMessage],
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[str]:
        ...

    @abstractmethod
    async def list_models(self) -> list[str]:
        ...

    @abstractmethod
    async def test_connection(self) -> ConnectionStatus:
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class HTTPBackend(ChatBackend):
    """Shared client handling for providers reached over HTTP."""

    def __init__(
        self,
        api_url: str,
        model: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 300.0,
    ):
        self.api_url = api_url.rstrip("/")
        self.model = model
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
