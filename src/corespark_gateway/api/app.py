"""
FastAPI application for the provider gateway.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from ..core.config import GatewayConfig, credentials_from_env, load_config
from ..core.credentials import CredentialStore
from ..core.dispatcher import DispatchCoordinator
from ..core.registry import ProviderRegistry
from ..core.vault import VaultCredentialSource
from .routes import router

logger = logging.getLogger(__name__)


def create_app(
    config: Optional[GatewayConfig] = None,
    credentials: Optional[CredentialStore] = None,
    registry: Optional[ProviderRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    vault: Optional[VaultCredentialSource] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        config: Gateway configuration. Loaded from YAML if None.
        credentials: Credential store. Seeded from env, Vault and config if None.
        registry: Provider catalog. Defaults to the global registry.
        transport: Optional httpx transport (used by tests)
        vault: Vault source. Built from VAULT_ADDR when that is set.

    Returns:
        Configured FastAPI app
    """
    config = config or load_config()
    if credentials is None:
        credentials = CredentialStore()
        credentials.set_credentials(credentials_from_env())
        if vault is None and os.getenv("VAULT_ADDR"):
            vault = VaultCredentialSource()
        if vault is not None:
            try:
                credentials.set_credentials(vault.load())
            finally:
                vault.close()
        credentials.set_credentials(config.credentials)

    coordinator = DispatchCoordinator(
        credentials,
        registry=registry,
        config=config,
        transport=transport,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await coordinator.connect()
        logger.info(f"Gateway ready ({len(coordinator.list_available())} providers available)")
        yield
        await coordinator.disconnect()

    app = FastAPI(
        title="CoreSpark Provider Gateway",
        description="Unified chat and image interface over multiple AI vendors",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.coordinator = coordinator
    app.include_router(router)

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "providers_available": len(coordinator.list_available()),
        }

    return app


def main() -> None:
    """Run the gateway with uvicorn."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        create_app(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8090")),
    )
