from dataclasses import dataclass, field, fields, replace
from typing import Optional

from vitalchat.errors import ConfigError

VALID_PROVIDERS = ("openai", "ollama", "lmstudio")


@dataclass
class ProviderSettings:
    api_url: str
    selected_model: str
    available_models: list[str] = field(default_factory=list)
    api_key: str = ""

    def copy(self) -> "ProviderSettings":
        return replace(self, available_models=list(self.available_models))


def _default_openai() -> ProviderSettings:
    return ProviderSettings(
        api_url="https://api.openai.com/v1",
        selected_model="gpt-3.5-turbo",
        available_models=["gpt-3.5-turbo", "gpt-4", "gpt-4o", "gpt-4o-mini"],
    )


def _default_ollama() -> ProviderSettings:
    return ProviderSettings(
        api_url="http://localhost:11434",
        selected_model="llama3",
        available_models=["llama3", "mistral", "gemma"],
    )


def _default_lmstudio() -> ProviderSettings:
    return ProviderSettings(
        api_url="http://localhost:1234/v1",
        selected_model="default",
        available_models=["default"],
    )


@dataclass
class AISettings:
    active_provider: str = "openai"
    enable_reasoning: bool = False

    openai: ProviderSettings = field(default_factory=_default_openai)
    ollama: ProviderSettings = field(default_factory=_default_ollama)
    lmstudio: ProviderSettings = field(default_factory=_default_lmstudio)

    @classmethod
    def from_dict(cls, data: dict) -> "AISettings":
        """Merge a partial settings mapping over the defaults."""
        settings = cls()
        if "active_provider" in data:
            settings.active_provider = data["active_provider"] or ""
        if "enable_reasoning" in data:
            settings.enable_reasoning = bool(data["enable_reasoning"])
        known = {f.name for f in fields(ProviderSettings)}
        for name in VALID_PROVIDERS:
            overrides = data.get(name) or {}
            current = getattr(settings, name)
            merged = replace(
                current,
                **{
                    k: list(v) if isinstance(v, list) else v
                    for k, v in overrides.items()
                    if k in known
                },
            )
            setattr(settings, name, merged)
        return settings

    def provider(self, name: Optional[str] = None) -> ProviderSettings:
        name = name or self.active_provider
        if name not in VALID_PROVIDERS:
            raise ConfigError(f"Unknown AI provider: {name!r}")
        return getattr(self, name)

    def with_overrides(
        self,
        *,
        provider: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
    ) -> "AISettings":
        """Return a copy with the active provider's settings overridden."""
        settings = replace(
            self,
            **{name: getattr(self, name).copy() for name in VALID_PROVIDERS},
        )
        if provider:
            if provider not in VALID_PROVIDERS:
                raise ConfigError(f"Unknown AI provider: {provider!r}")
            settings.active_provider = provider
        name = settings.active_provider
        if name not in VALID_PROVIDERS:
            return settings
        current = getattr(settings, name)
        changes = {}
        if api_url:
            changes["api_url"] = api_url
        if model:
            changes["selected_model"] = model
        if api_key:
            changes["api_key"] = api_key
        setattr(settings, name, replace(current, **changes))
        return settings
