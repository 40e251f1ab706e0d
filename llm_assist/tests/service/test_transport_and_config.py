"""Request command construction and provider configuration layering."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from llm_assist.base.dto import ProviderSettings
from llm_assist.config import ProviderTable, UnknownProviderError, load_external_config, resolve_api_key
from llm_assist.config.env import env_overrides, is_placeholder
from llm_assist.service.transport import build_curl_args, curl_command, redact_args

PAYLOAD = {"model": "m", "messages": [{"role": "user", "content": "héllo"}], "stream": True}


def _settings(**kw):
    base = {"url": "https://api.example.invalid/v1/chat", "model": "m"}
    base.update(kw)
    return ProviderSettings(**base)


def test_curl_args_bearer_and_url_last():
    args = build_curl_args(_settings(headers={"X-Title": "assist"}), PAYLOAD, "sk-123", stream=True)
    assert args[0] == "-N"
    assert args[-1] == "https://api.example.invalid/v1/chat"
    assert json.loads(args[args.index("-d") + 1]) == PAYLOAD
    assert "Authorization: Bearer sk-123" in args
    assert args.index("Authorization: Bearer sk-123") < args.index("X-Title: assist")


def test_curl_args_anthropic_headers_and_no_key():
    args = build_curl_args(_settings(adapter="anthropic"), PAYLOAD, "k", stream=False)
    assert "-N" not in args
    assert "x-api-key: k" in args
    assert "anthropic-version: 2023-06-01" in args

    no_key = build_curl_args(_settings(), PAYLOAD, None, stream=False)
    assert not any(a.startswith("Authorization") for a in no_key)


def test_curl_command_and_redaction():
    argv = curl_command(_settings(), PAYLOAD, "sk-secret", stream=True)
    assert argv[0] == "curl"
    redacted = redact_args(argv)
    assert "Authorization: ***" in redacted
    assert not any("sk-secret" in a for a in redacted)


def test_placeholder_keys_are_ignored():
    settings = _settings(api_key_name="GROQ_API_KEY")
    assert resolve_api_key(settings, {"GROQ_API_KEY": " gsk_real "}) == "gsk_real"
    assert resolve_api_key(settings, {"GROQ_API_KEY": "your-key-here"}) is None
    assert resolve_api_key(settings, {}) is None
    assert resolve_api_key(_settings(), {"GROQ_API_KEY": "x"}) is None
    assert is_placeholder("CHANGEME")
    assert not is_placeholder("sk-live")


def test_builtin_providers():
    table = ProviderTable(environ={})
    assert {"groq", "openai", "anthropic"} <= set(table.names())
    assert table.get("anthropic").adapter == "anthropic"
    assert table.get("groq").stream_params == {"temperature": 0.7}


def test_unknown_provider():
    with pytest.raises(UnknownProviderError) as info:
        ProviderTable(environ={}).get("mistral")
    assert str(info.value) == "Invalid service: mistral"


def test_env_overrides_model_and_url():
    env = {"GROQ_MODEL": "llama-3.1-8b", "OPENAI_URL": "http://localhost:8080/v1/chat/completions"}
    assert env_overrides("groq", env) == {"model": "llama-3.1-8b"}
    table = ProviderTable(environ=env)
    assert table.get("groq").model == "llama-3.1-8b"
    assert table.get("openai").url == "http://localhost:8080/v1/chat/completions"


def test_yaml_config_file_merges_and_adds(tmp_path):
    path = tmp_path / "providers.yaml"
    path.write_text(
        "openai:\n"
        "  model: gpt-4o-mini\n"
        "openrouter:\n"
        "  url: https://openrouter.ai/api/v1/chat/completions\n"
        "  model: openrouter/auto\n"
        "  api_key_name: OPENROUTER_API_KEY\n"
        "  headers:\n"
        "    HTTP-Referer: https://example.invalid\n",
        encoding="utf-8",
    )
    table = ProviderTable(environ={"LLM_ASSIST_CONFIG_FILE": str(path), "OPENAI_MODEL": "gpt-env"})
    assert table.get("openai").model == "gpt-env"
    assert table.get("openai").url.startswith("https://api.openai.com")
    assert table.get("openrouter").headers == {"HTTP-Referer": "https://example.invalid"}


def test_json_config_file_and_bad_yaml(tmp_path):
    good = tmp_path / "p.json"
    good.write_text(json.dumps({"groq": {"timeout_ms": 500}}), encoding="utf-8")
    assert ProviderTable(config_file=good, environ={}).get("groq").timeout_ms == 500

    bad = tmp_path / "bad.yaml"
    bad.write_text("groq: [unclosed\n", encoding="utf-8")
    assert load_external_config(bad) == {}
    assert load_external_config(tmp_path / "missing.yaml") == {}


def test_setup_overrides_and_timeout():
    table = ProviderTable(environ={})
    table.setup({"groq": {"model": "mixtral"}, "local": {"url": "http://localhost:11434/v1/chat/completions", "model": "qwen"}}, timeout_ms=2000)
    assert table.get("groq").model == "mixtral"
    assert table.get("local").adapter == "openai"
    assert all(s.timeout_ms == 2000 for _, s in table.items())


def test_invalid_setup_leaves_table_untouched():
    table = ProviderTable(environ={})
    with pytest.raises(ValidationError):
        table.setup({"groq": {"model": ""}})
    assert table.get("groq").model == "llama3-70b-8192"
