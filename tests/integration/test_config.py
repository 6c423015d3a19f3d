"""
Tests for configuration loading and credential sources.
"""
import httpx
import pytest

from corespark_gateway.adapters import anthropic, google
from corespark_gateway.core.config import (
    DEFAULT_MAX_TOKENS,
    GatewayConfig,
    GenerationSettings,
    credentials_from_env,
    load_config,
)
from corespark_gateway.core.registry import ProviderRegistry
from corespark_gateway.core.vault import VaultCredentialSource
from corespark_gateway.models.provider import CredentialVendor

CONFIG_YAML = """
timeout: 30
image_quality: hd
generation:
  anthropic:
    temperature: 0.5
    max_tokens: 2048
  claude-3-opus:
    max_tokens: 8192
credentials:
  openai: ${TEST_OPENAI_KEY}
  anthropic: sk-ant-inline
  mistral: ignored
"""


class TestLoadConfig:
    """Test YAML configuration loading."""

    def test_load_from_file(self, tmp_path, monkeypatch):
        """Test values and ${VAR} expansion from a YAML file."""
        monkeypatch.setenv("TEST_OPENAI_KEY", "sk-from-env")
        path = tmp_path / "gateway.yaml"
        path.write_text(CONFIG_YAML)

        config = load_config(str(path))

        assert config.timeout == 30.0
        assert config.image_quality == "hd"
        assert config.credentials == {
            CredentialVendor.OPENAI: "sk-from-env",
            CredentialVendor.ANTHROPIC: "sk-ant-inline",
        }

    def test_unset_env_var_drops_credential(self, tmp_path, monkeypatch):
        monkeypatch.delenv("TEST_OPENAI_KEY", raising=False)
        path = tmp_path / "gateway.yaml"
        path.write_text(CONFIG_YAML)

        config = load_config(str(path))
        assert CredentialVendor.OPENAI not in config.credentials

    def test_env_var_selects_file(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("timeout: 5\n")
        monkeypatch.setenv("CORESPARK_GATEWAY_CONFIG", str(path))

        assert load_config().timeout == 5.0

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "absent.yaml"))
        assert config == GatewayConfig()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "gateway.yaml"
        path.write_text("")
        assert load_config(str(path)) == GatewayConfig()

    @pytest.mark.parametrize("content", [
        "image_quality: ultra\n",
        "generation:\n  openai:\n    max_tokens: 0\n",
        "generation:\n  openai:\n    temperature: 3.5\n",
        "generation:\n  openai: fast\n",
        "timeout: [1, 2]\n",
        "key: [unclosed\n",
        "- openai\n- anthropic\n",
        "generation: [1, 2]\n",
        "credentials: sk-123\n",
    ])
    def test_invalid_config_falls_back(self, tmp_path, content):
        """Test invalid files are logged and replaced by defaults."""
        path = tmp_path / "gateway.yaml"
        path.write_text(content)
        assert load_config(str(path)) == GatewayConfig()


class TestGenerationSettings:
    """Test resolution of per-vendor and per-provider overrides."""

    def test_defaults(self):
        settings = GenerationSettings()
        assert settings.max_tokens == DEFAULT_MAX_TOKENS == 4000
        assert settings.temperature == 0.7

    def test_provider_override_beats_vendor(self, registry):
        """Test provider-id keys are applied after vendor keys."""
        config = GatewayConfig.from_dict({
            "generation": {
                "anthropic": {"temperature": 0.5, "max_tokens": 2048},
                "claude-3-opus": {"max_tokens": 8192},
            },
        })

        opus = config.generation_settings(registry.require("claude-3-opus"), anthropic.DEFAULTS)
        sonnet = config.generation_settings(registry.require("claude-3-sonnet"), anthropic.DEFAULTS)

        assert opus == GenerationSettings(max_tokens=8192, temperature=0.5)
        assert sonnet == GenerationSettings(max_tokens=2048, temperature=0.5)

    def test_unrelated_override_ignored(self, registry):
        config = GatewayConfig.from_dict({"generation": {"openai": {"max_tokens": 10}}})
        settings = config.generation_settings(registry.require("gemini-pro"), google.DEFAULTS)
        assert settings == google.DEFAULTS

    def test_ceiling_clamped_to_descriptor(self):
        registry = ProviderRegistry()
        settings = GenerationSettings(max_tokens=50000)
        assert settings.max_tokens_for(registry.require("gpt-3.5-turbo")) == 16385
        assert settings.max_tokens_for(registry.require("dall-e-3")) == 50000


class TestCredentialsFromEnv:
    """Test environment credential discovery."""

    def test_reads_known_variables(self):
        environ = {
            "OPENAI_API_KEY": "sk-1",
            "ANTHROPIC_API_KEY": "",
            "REPLICATE_API_TOKEN": "r8-1",
            "UNRELATED": "x",
        }
        assert credentials_from_env(environ) == {
            CredentialVendor.OPENAI: "sk-1",
            CredentialVendor.REPLICATE: "r8-1",
        }

    def test_google_fallback_variable(self):
        assert credentials_from_env({"GEMINI_API_KEY": "g-1"}) == {CredentialVendor.GOOGLE: "g-1"}
        assert credentials_from_env({"GOOGLE_API_KEY": "g-2", "GEMINI_API_KEY": "g-1"}) == {
            CredentialVendor.GOOGLE: "g-2"
        }


class TestVaultCredentialSource:
    """Test reading credentials from Vault KV."""

    def _source(self, handler, **kwargs):
        requests = []

        def record(request):
            requests.append(request)
            return handler(request)

        source = VaultCredentialSource(
            addr="http://vault.test:8200",
            token="s.test-token",
            transport=httpx.MockTransport(record),
            **kwargs,
        )
        return source, requests

    def test_kv_v2(self):
        """Test KV v2 path layout and nested data."""
        source, requests = self._source(lambda r: httpx.Response(200, json={
            "data": {"data": {"openai": "sk-v", "google": "g-v", "notes": "skip", "anthropic": ""}},
        }))

        assert source.load() == {
            CredentialVendor.OPENAI: "sk-v",
            CredentialVendor.GOOGLE: "g-v",
        }
        assert requests[0].url.path == "/v1/secret/data/corespark/providers"
        assert requests[0].headers["X-Vault-Token"] == "s.test-token"
        source.close()

    def test_kv_v1(self):
        source, requests = self._source(
            lambda r: httpx.Response(200, json={"data": {"stability": "st-v"}}),
            path="kv/gateway",
            kv_version=1,
            namespace="team-a",
        )

        assert source.load() == {CredentialVendor.STABILITY: "st-v"}
        assert requests[0].url.path == "/v1/kv/gateway"
        assert requests[0].headers["X-Vault-Namespace"] == "team-a"

    def test_missing_secret(self):
        source, _ = self._source(lambda r: httpx.Response(404, json={"errors": []}))
        assert source.load() == {}

    def test_server_error(self):
        source, _ = self._source(lambda r: httpx.Response(500, text="sealed"))
        assert source.load() == {}

    @pytest.mark.parametrize("body", [
        ["openai", "sk-v"],
        {"data": None},
        {"data": {"data": None}},
        {"data": {"data": "sk-v"}},
    ])
    def test_unexpected_body_shape(self, body):
        """Test bodies that are not nested mappings yield no credentials."""
        source, _ = self._source(lambda r: httpx.Response(200, json=body))
        assert source.load() == {}

    def test_unreachable(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        source, _ = self._source(refuse)
        assert source.load() == {}
