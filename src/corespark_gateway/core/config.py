"""
Configuration loading for the provider gateway.
"""

import os
import logging
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, replace
from pathlib import Path

import yaml

from ..models.provider import CredentialVendor, ProviderDescriptor

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "CORESPARK_GATEWAY_CONFIG"
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 60.0
IMAGE_QUALITIES = ("standard", "hd")

# Environment variables consulted by credentials_from_env, in priority order
CREDENTIAL_ENV_VARS = {
    CredentialVendor.OPENAI: ("OPENAI_API_KEY",),
    CredentialVendor.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    CredentialVendor.GOOGLE: ("GOOGLE_API_KEY", "GEMINI_API_KEY"),
    CredentialVendor.STABILITY: ("STABILITY_API_KEY",),
    CredentialVendor.REPLICATE: ("REPLICATE_API_TOKEN",),
}


@dataclass(frozen=True)
class GenerationSettings:
    """Token ceiling and sampling temperature sent with a chat request."""
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: Optional[float] = DEFAULT_TEMPERATURE

    def merged(self, overrides: Dict[str, Any]) -> "GenerationSettings":
        """Return a copy with the keys present in overrides replaced."""
        changes = {k: v for k, v in overrides.items() if k in ("max_tokens", "temperature")}
        return replace(self, **changes)

    def max_tokens_for(self, descriptor: ProviderDescriptor) -> int:
        """Configured ceiling, clamped to the descriptor's own limit."""
        if descriptor.max_tokens is not None:
            return min(self.max_tokens, descriptor.max_tokens)
        return self.max_tokens


@dataclass
class GatewayConfig:
    """Complete gateway configuration."""
    timeout: float = DEFAULT_TIMEOUT
    image_quality: str = "standard"
    # Keyed by vendor value or provider id; provider id takes precedence
    generation: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    credentials: Dict[CredentialVendor, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GatewayConfig":
        return _parse_config(data)

    def generation_settings(
        self,
        descriptor: ProviderDescriptor,
        defaults: GenerationSettings,
    ) -> GenerationSettings:
        """
        Resolve generation settings for a provider.

        Args:
            descriptor: Provider being dispatched to
            defaults: Vendor defaults from the adapter

        Returns:
            Defaults overlaid with vendor, then provider overrides
        """
        settings = defaults
        for key in (descriptor.vendor.value, descriptor.id):
            if key in self.generation:
                settings = settings.merged(self.generation[key])
        return settings


def load_config(config_path: Optional[str] = None) -> GatewayConfig:
    """
    Load gateway configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        Loaded configuration
    """
    if config_path is None:
        paths = [
            Path("config/gateway.yaml"),
            Path.home() / ".config/corespark-gateway/gateway.yaml",
        ]
        if os.environ.get(CONFIG_ENV_VAR):
            paths.insert(0, Path(os.environ[CONFIG_ENV_VAR]))
        for p in paths:
            if p.exists():
                config_path = str(p)
                break

    if config_path is None or not Path(config_path).exists():
        logger.warning("No gateway config file found, using defaults")
        return GatewayConfig()

    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f) or {}

        return _parse_config(data)

    except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        return GatewayConfig()


def _expand_env(value: Any) -> Any:
    """Expand a ${VAR} placeholder from the environment."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        return os.environ.get(value[2:-1], "")
    return value


def _parse_generation(key: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate one generation override block."""
    if not isinstance(data, dict):
        raise ValueError(f"generation.{key} must be a mapping")

    overrides: Dict[str, Any] = {}
    if "max_tokens" in data:
        max_tokens = data["max_tokens"]
        if not isinstance(max_tokens, int) or isinstance(max_tokens, bool) or max_tokens < 1:
            raise ValueError(f"generation.{key}.max_tokens must be a positive integer")
        overrides["max_tokens"] = max_tokens
    if "temperature" in data:
        temperature = data["temperature"]
        if temperature is not None:
            temperature = float(temperature)
            if not 0 <= temperature <= 2:
                raise ValueError(f"generation.{key}.temperature must be between 0 and 2")
        overrides["temperature"] = temperature
    return overrides


def _parse_config(data: Dict[str, Any]) -> GatewayConfig:
    """Parse configuration dictionary."""
    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping")
    for section in ("generation", "credentials"):
        if not isinstance(data.get(section) or {}, dict):
            raise ValueError(f"{section} must be a mapping")

    image_quality = data.get("image_quality", "standard")
    if image_quality not in IMAGE_QUALITIES:
        raise ValueError(f"image_quality must be one of {', '.join(IMAGE_QUALITIES)}")

    generation = {
        str(key): _parse_generation(str(key), value)
        for key, value in (data.get("generation") or {}).items()
    }

    credentials: Dict[CredentialVendor, str] = {}
    for vendor, secret in (data.get("credentials") or {}).items():
        try:
            credential_vendor = CredentialVendor(vendor)
        except ValueError:
            logger.warning(f"Ignoring credential for unknown vendor: {vendor}")
            continue
        secret = _expand_env(secret)
        if secret:
            credentials[credential_vendor] = str(secret)

    return GatewayConfig(
        timeout=float(data.get("timeout", DEFAULT_TIMEOUT)),
        image_quality=image_quality,
        generation=generation,
        credentials=credentials,
    )


def credentials_from_env(environ: Optional[Dict[str, str]] = None) -> Dict[CredentialVendor, str]:
    """
    Collect vendor credentials from environment variables.

    Args:
        environ: Environment mapping. Defaults to os.environ.

    Returns:
        Partial vendor -> secret mapping; unset and empty variables are skipped
    """
    environ = os.environ if environ is None else environ
    credentials = {}
    for vendor, names in CREDENTIAL_ENV_VARS.items():
        for name in names:
            if environ.get(name):
                credentials[vendor] = environ[name]
                break
    return credentials
