"""
HashiCorp Vault credential source.
"""

import os
import logging
from typing import Dict, Optional

import httpx

from ..models.provider import CredentialVendor

logger = logging.getLogger(__name__)

DEFAULT_SECRET_PATH = "secret/corespark/providers"


class VaultCredentialSource:
    """
    Reads vendor API keys from a Vault KV secret.

    The secret's keys are vendor names ("openai", "anthropic", ...).
    Supports both KV v1 and KV v2 secrets engines.
    """

    def __init__(
        self,
        addr: Optional[str] = None,
        token: Optional[str] = None,
        path: str = DEFAULT_SECRET_PATH,
        namespace: Optional[str] = None,
        kv_version: int = 2,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the Vault source.

        Args:
            addr: Vault server address. Defaults to VAULT_ADDR env var.
            token: Vault token. Defaults to VAULT_TOKEN env var.
            path: Secret path holding the vendor keys.
            namespace: Vault namespace (Enterprise feature).
            kv_version: KV secrets engine version (1 or 2).
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.addr = (addr or os.getenv("VAULT_ADDR", "http://localhost:8200")).rstrip("/")
        self.token = token or os.getenv("VAULT_TOKEN")
        self.namespace = namespace or os.getenv("VAULT_NAMESPACE")
        self.path = path
        self.kv_version = kv_version
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def client(self) -> httpx.Client:
        """Get HTTP client with Vault headers."""
        if self._client is None:
            headers = {}
            if self.token:
                headers["X-Vault-Token"] = self.token
            if self.namespace:
                headers["X-Vault-Namespace"] = self.namespace

            self._client = httpx.Client(
                base_url=self.addr,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    def _build_path(self, path: str) -> str:
        """Build the API path for KV operations."""
        # KV v2 nests data under <mount>/data/<path>
        if self.kv_version == 2:
            parts = path.split("/", 1)
            if len(parts) == 2:
                mount, subpath = parts
                return f"/v1/{mount}/data/{subpath}"
            return f"/v1/{path}/data"

        return f"/v1/{path}"

    def load(self) -> Dict[CredentialVendor, str]:
        """
        Read vendor credentials from Vault.

        Returns:
            Partial vendor -> secret mapping. Empty on any Vault failure.
        """
        try:
            response = self.client.get(self._build_path(self.path))

            if response.status_code == 404:
                logger.warning(f"No credentials found in Vault at {self.path}")
                return {}

            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Failed to read credentials from Vault at {self.path}: {e}")
            return {}

        secrets = data.get("data") if isinstance(data, dict) else None
        if self.kv_version == 2 and isinstance(secrets, dict):
            secrets = secrets.get("data")
        if not isinstance(secrets, dict):
            logger.error(f"Unexpected Vault response shape at {self.path}")
            return {}

        credentials = {}
        for key, secret in secrets.items():
            try:
                vendor = CredentialVendor(key)
            except ValueError:
                logger.debug(f"Skipping non-vendor Vault key: {key}")
                continue
            if secret:
                credentials[vendor] = secret

        logger.info(f"Loaded {len(credentials)} credentials from Vault")
        return credentials

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
