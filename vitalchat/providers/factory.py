import logging
from typing import Optional

import httpx

from vitalchat.config import VALID_PROVIDERS, AISettings
from vitalchat.providers.base import ChatBackend
from vitalchat.providers.ollama import OllamaBackend
from vitalchat.providers.openai_compat import OpenAICompatBackend

log = logging.getLogger(__name__)


def create_backend(
    settings: AISettings, *, client: Optional[httpx.AsyncClient] = None
) -> ChatBackend:
    """Build the backend for ``settings.active_provider``.

    An empty or unknown provider falls back to OpenAI.
    """
    name = settings.active_provider
    if name not in VALID_PROVIDERS:
        log.warning("unknown provider %r, falling back to openai", name)
        name = "openai"
    provider = settings.provider(name)

    if name == "ollama":
        return OllamaBackend(
            provider.api_url,
            provider.selected_model,
            default_models=provider.available_models,
            client=client,
        )
    return OpenAICompatBackend(
        provider.api_url,
        provider.selected_model,
        provider.api_key,
        name=name,
        default_models=provider.available_models,
        client=client,
    )
