import argparse

import pytest

from vitalchat.__main__ import build_parser, log_handler, settings_from_args
from vitalchat.config import AISettings
from vitalchat.errors import ConfigError
from vitalchat.providers.factory import create_backend
from vitalchat.providers.ollama import OllamaBackend
from vitalchat.providers.openai_compat import OpenAICompatBackend


def test_defaults():
    s = AISettings()
    assert s.active_provider == "openai"
    assert s.enable_reasoning is False
    assert s.openai.api_url == "https://api.openai.com/v1"
    assert s.ollama.selected_model == "llama3"
    assert s.lmstudio.api_url == "http://localhost:1234/v1"


def test_from_dict_merges_partial_settings():
    s = AISettings.from_dict({
        "active_provider": "ollama",
        "ollama": {"selected_model": "qwq", "unknown_field": 1},
    })
    assert s.active_provider == "ollama"
    assert s.ollama.selected_model == "qwq"
    assert s.ollama.api_url == "http://localhost:11434"
    assert s.openai.selected_model == "gpt-3.5-turbo"


def test_provider_lookup_rejects_unknown():
    with pytest.raises(ConfigError):
        AISettings().provider("bard")


def test_with_overrides_targets_active_provider():
    s = AISettings().with_overrides(provider="lmstudio", model="deepseek-r1")
    assert s.active_provider == "lmstudio"
    assert s.lmstudio.selected_model == "deepseek-r1"
    assert AISettings().lmstudio.selected_model == "default"


def test_with_overrides_rejects_unknown_provider():
    with pytest.raises(ConfigError):
        AISettings().with_overrides(provider="bard")


def test_factory_dispatch():
    assert isinstance(
        create_backend(AISettings(active_provider="ollama")), OllamaBackend
    )
    lmstudio = create_backend(AISettings(active_provider="lmstudio"))
    assert isinstance(lmstudio, OpenAICompatBackend)
    assert lmstudio.name == "lmstudio"
    assert lmstudio.api_url == "http://localhost:1234/v1"


def test_factory_falls_back_to_openai():
    backend = create_backend(AISettings(active_provider=""))
    assert isinstance(backend, OpenAICompatBackend)
    assert backend.name == "openai"


def test_cli_args_override_environment(monkeypatch):
    monkeypatch.setenv("VITALCHAT_PROVIDER", "ollama")
    monkeypatch.setenv("VITALCHAT_MODEL", "mistral")
    args = build_parser().parse_args(["--model", "gemma", "--show-reasoning"])
    s = settings_from_args(args)
    assert s.active_provider == "ollama"
    assert s.ollama.selected_model == "gemma"
    assert s.enable_reasoning is True


def test_cli_api_key_from_environment(monkeypatch):
    monkeypatch.delenv("VITALCHAT_API_KEY", raising=False)
    monkeypatch.delenv("VITALCHAT_PROVIDER", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    s = settings_from_args(build_parser().parse_args([]))
    assert s.openai.api_key == "sk-env"


def test_cli_one_shot_prompt_words_are_collected():
    args = build_parser().parse_args(["how", "is", "the", "ECG?"])
    assert isinstance(args, argparse.Namespace)
    assert args.prompt == ["how", "is", "the", "ECG?"]


def test_with_overrides_does_not_share_provider_state():
    original = AISettings()
    copy = original.with_overrides(provider="ollama")
    copy.openai.available_models.append("o1")
    copy.ollama.available_models.append("qwq")
    assert "o1" not in original.openai.available_models
    assert "qwq" not in original.ollama.available_models


def test_from_dict_copies_model_lists():
    models = ["qwen3-8b"]
    s = AISettings.from_dict({"lmstudio": {"available_models": models}})
    s.lmstudio.available_models.append("deepseek-r1")
    assert models == ["qwen3-8b"]


def test_log_handler_writes_to_stderr():
    handler = log_handler()
    assert handler.console.stderr is True


def test_log_level_is_case_insensitive():
    args = build_parser().parse_args(["--log-level", "debug"])
    assert args.log_level == "DEBUG"


def test_invalid_log_level_is_rejected(capsys):
    with pytest.raises(SystemExit) as info:
        build_parser().parse_args(["--log-level", "verbose"])
    assert info.value.code == 2
    assert "--log-level" in capsys.readouterr().err


def test_invalid_log_level_env_uses_default(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    assert build_parser().parse_args([]).log_level == "WARNING"
