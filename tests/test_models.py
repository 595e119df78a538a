"""Tests for the model registry and provider resolution"""

import pytest

from ai_engine.models import (
    BUILTIN_MODELS,
    DEFAULT_MODEL,
    ConfigurationError,
    ModelRegistry,
    ProviderConfig,
    ProviderKind,
    detect_provider,
    resolve_provider_config,
)


class TestModelRegistry:
    """Test model registry lookups"""

    def test_get_existing_model(self):
        config = ModelRegistry().get_model("anthropic-sonnet")
        assert config == ProviderConfig(
            ProviderKind.ANTHROPIC, "https://api.anthropic.com", "claude-sonnet-4-6"
        )

    def test_alter_models_carry_compound_id(self):
        config = ModelRegistry().get_model("alter-gemini-pro")
        assert config.kind is ProviderKind.ALTERHQ
        assert config.model == "Gemini#gemini-1.5-pro"

    def test_get_nonexistent_model(self):
        assert ModelRegistry().get_model("nonexistent-model") is None

    def test_no_fuzzy_matching(self):
        registry = ModelRegistry()
        assert registry.get_model("ALTER-CLAUDE-HAIKU") is None
        assert registry.get_model("claude-sonnet-4-6") is None

    def test_default_model_is_registered(self):
        assert DEFAULT_MODEL in ModelRegistry()

    def test_every_kind_has_a_builtin(self):
        kinds = {config.kind for config in BUILTIN_MODELS.values()}
        assert kinds == set(ProviderKind)

    def test_unknown_model_message_lists_all_keys(self):
        registry = ModelRegistry()
        message = registry.unknown_model_message("nope")
        assert '"nope"' in message
        for key in registry:
            assert key in message

    def test_models_view_is_read_only(self):
        registry = ModelRegistry()
        with pytest.raises(TypeError):
            registry.models["x"] = registry.get_model(DEFAULT_MODEL)

    def test_register_extends_copy_only(self):
        registry = ModelRegistry()
        config = ProviderConfig(ProviderKind.OLLAMA, "http://localhost:11434", "phi3")
        registry.register("ollama-phi3", config)
        assert registry.get_model("ollama-phi3") == config
        assert "ollama-phi3" not in BUILTIN_MODELS
        assert "ollama-phi3" not in ModelRegistry()


class TestDetectProvider:
    """Test provider inference from endpoints"""

    @pytest.mark.parametrize(
        "endpoint,expected",
        [
            ("https://alterhq.com/api", ProviderKind.ALTERHQ),
            ("https://api.openai.com/v1", ProviderKind.OPENAI),
            ("https://API.Anthropic.com", ProviderKind.ANTHROPIC),
            ("http://localhost:11434", ProviderKind.OLLAMA),
            ("http://127.0.0.1:11434", ProviderKind.OLLAMA),
            ("http://ollama.lan:11434", ProviderKind.OLLAMA),
            ("https://my-vllm.example.com/v1", ProviderKind.OPENAI),
        ],
    )
    def test_known_endpoints(self, endpoint, expected):
        assert detect_provider(endpoint) is expected

    def test_missing_endpoint(self):
        assert detect_provider("") is None
        assert detect_provider(None) is None


class TestResolveProviderConfig:
    """Test resolving caller model specs"""

    def test_shorthand(self):
        registry = ModelRegistry()
        assert resolve_provider_config("ollama-llama3", registry) is registry.get_model(
            "ollama-llama3"
        )

    def test_unknown_shorthand(self):
        with pytest.raises(ConfigurationError, match="alter-claude-haiku"):
            resolve_provider_config("no-such-model", ModelRegistry())

    def test_provider_config_used_directly(self):
        config = ProviderConfig(ProviderKind.OPENAI, "https://example.com/v1", "m")
        assert resolve_provider_config(config, ModelRegistry()) is config

    def test_mapping_with_endpoint_only(self):
        config = resolve_provider_config(
            {"endpoint": "https://api.openai.com/v1", "model": "gpt-4o"}, ModelRegistry()
        )
        assert config == ProviderConfig(ProviderKind.OPENAI, "https://api.openai.com/v1", "gpt-4o")

    def test_explicit_kind_wins_over_endpoint(self):
        config = resolve_provider_config(
            {"provider": "ollama", "endpoint": "http://gpu-box:11434", "model": "phi3"},
            ModelRegistry(),
        )
        assert config.kind is ProviderKind.OLLAMA
        assert config.endpoint == "http://gpu-box:11434"

    def test_explicit_kind_without_endpoint_uses_default(self):
        config = resolve_provider_config({"kind": "anthropic"}, ModelRegistry())
        assert config.endpoint == "https://api.anthropic.com"
        assert config.model == "claude-opus-4-6"

    def test_unrecognised_explicit_kind(self):
        with pytest.raises(ConfigurationError, match="unrecognised provider"):
            resolve_provider_config({"provider": "cohere", "endpoint": "x"}, ModelRegistry())

    def test_neither_kind_nor_endpoint(self):
        with pytest.raises(ConfigurationError, match="endpoint is required"):
            resolve_provider_config({"model": "gpt-4o"}, ModelRegistry())

    def test_unsupported_spec_type(self):
        with pytest.raises(ConfigurationError):
            resolve_provider_config(None, ModelRegistry())

    def test_base_url_strips_trailing_slash(self):
        config = ProviderConfig(ProviderKind.OPENAI, "https://api.openai.com/v1/", "m")
        assert config.base_url == "https://api.openai.com/v1"
