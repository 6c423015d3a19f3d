"""
REST API routes for the provider gateway.
"""

import logging
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ..adapters.openai import DEFAULT_IMAGE_SIZE
from ..core.credentials import CredentialStore
from ..core.dispatcher import DEFAULT_IMAGE_PROVIDER, DispatchCoordinator
from ..models.conversation import ConversationMessage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["gateway"])


class ChatRequestBody(BaseModel):
    """Conversation to dispatch."""
    messages: List[ConversationMessage] = Field(..., min_length=1)
    system_prompt: Optional[str] = None


class ImageRequestBody(BaseModel):
    """Image generation request."""
    prompt: str
    size: str = DEFAULT_IMAGE_SIZE
    provider_id: str = DEFAULT_IMAGE_PROVIDER
    quality: Optional[Literal["standard", "hd"]] = None


def get_coordinator(request: Request) -> DispatchCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return coordinator


def get_credentials(request: Request) -> CredentialStore:
    return get_coordinator(request).credentials


# Providers

@router.get("/providers")
async def list_providers(coordinator: DispatchCoordinator = Depends(get_coordinator)):
    """Full provider catalog."""
    return [d.model_dump(mode="json") for d in coordinator.registry.list_providers()]


@router.get("/providers/available")
async def list_available(coordinator: DispatchCoordinator = Depends(get_coordinator)):
    """Providers usable with the configured credentials."""
    return [d.model_dump(mode="json") for d in coordinator.list_available()]


# Credentials

@router.put("/credentials")
async def set_credentials(
    credentials: Dict[str, Optional[str]],
    store: CredentialStore = Depends(get_credentials),
):
    """Merge API keys into the store. Secrets are never echoed back."""
    try:
        store.set_credentials(credentials)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"configured": sorted(v.value for v in store.configured_vendors())}


@router.delete("/credentials")
async def clear_credentials(store: CredentialStore = Depends(get_credentials)):
    """Remove every API key."""
    store.clear()
    return {"configured": []}


# Dispatch

@router.post("/chat/{provider_id}")
async def chat(
    provider_id: str,
    body: ChatRequestBody,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
):
    """Dispatch a conversation. Failures are reported in the body."""
    result = await coordinator.dispatch(provider_id, body.messages, body.system_prompt)
    return result.model_dump(mode="json")


@router.post("/chat/{provider_id}/stream")
async def chat_stream(
    provider_id: str,
    body: ChatRequestBody,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
):
    """Stream a conversation as server-sent events."""

    async def events():
        async for event in coordinator.stream(provider_id, body.messages, body.system_prompt):
            yield f"data: {event.model_dump_json()}\n\n"

    return StreamingResponse(events(), media_type="text/event-stream")


@router.post("/images")
async def generate_image(
    body: ImageRequestBody,
    coordinator: DispatchCoordinator = Depends(get_coordinator),
):
    """Generate one image and return its URL."""
    result = await coordinator.generate_image(
        body.prompt,
        size=body.size,
        provider_id=body.provider_id,
        quality=body.quality,
    )
    return result.model_dump(mode="json")
