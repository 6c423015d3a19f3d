"""
Dispatch coordinator.

Resolves a provider, checks its credential, translates the conversation,
performs a single HTTP call and normalizes the outcome. Every runtime
failure comes back as a DispatchFailure; nothing is retried.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Union

import httpx
from opentelemetry import trace

from ..adapters import extract_error_message, get_adapter, get_image_adapter
from ..adapters.base import AuthScheme
from ..adapters.openai import DEFAULT_IMAGE_SIZE
from ..models.conversation import Conversation
from ..models.provider import ProviderCapability, ProviderDescriptor
from ..models.result import (
    DispatchFailure,
    DispatchResult,
    DispatchSuccess,
    FailureKind,
    ImageResult,
    ImageSuccess,
    StreamChunk,
    StreamEvent,
    StreamSummary,
)
from .config import GatewayConfig
from .credentials import CredentialStore
from .errors import NormalizationError
from .registry import ProviderRegistry, get_registry

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_IMAGE_PROVIDER = "dall-e-3"

# Raised by normalizers on shapes the path helpers do not anticipate
_PARSE_ERRORS = (NormalizationError, AttributeError, TypeError, ValueError)


class DispatchCoordinator:
    """
    Entry point for chat, image and streaming calls.

    Holds no per-call state; concurrent dispatches share only the read-only
    registry, the credential store and the HTTP connection pool.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        registry: Optional[ProviderRegistry] = None,
        config: Optional[GatewayConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            credentials: Store consulted on every dispatch
            registry: Provider catalog. Defaults to the global registry.
            config: Timeouts and generation overrides
            transport: Optional httpx transport (used by tests)
        """
        self.credentials = credentials
        self.registry = registry or get_registry()
        self.config = config or GatewayConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Create the shared HTTP client."""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=self._transport,
        )
        logger.info("Dispatch coordinator connected")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Dispatch coordinator disconnected")

    async def __aenter__(self) -> "DispatchCoordinator":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.disconnect()

    def list_available(self) -> List[ProviderDescriptor]:
        """Providers usable with the current credentials."""
        return self.registry.list_available(self.credentials)

    # Chat

    async def dispatch(
        self,
        provider_id: str,
        conversation: Conversation,
        system_prompt: Optional[str] = None,
    ) -> DispatchResult:
        """
        Send a conversation to a provider.

        Args:
            provider_id: Registry id of the target provider
            conversation: Ordered conversation turns
            system_prompt: Optional system instruction

        Returns:
            DispatchSuccess or a classified DispatchFailure

        Raises:
            UnsupportedVendorError: If the descriptor's vendor has no adapter
        """
        with tracer.start_as_current_span("gateway.dispatch") as span:
            span.set_attribute("gateway.provider_id", provider_id)
            result = await self._dispatch(provider_id, conversation, system_prompt)
            _record_outcome(span, result, self.registry.get(provider_id))
            return result

    async def _dispatch(
        self,
        provider_id: str,
        conversation: Conversation,
        system_prompt: Optional[str],
    ) -> DispatchResult:
        resolved = self._resolve(provider_id)
        if isinstance(resolved, DispatchFailure):
            return resolved
        descriptor, secret = resolved

        if not descriptor.is_conversational:
            return _failure(
                descriptor,
                FailureKind.INVALID_REQUEST,
                f"{descriptor.name} does not support chat; use image generation instead",
            )

        adapter = get_adapter(descriptor.vendor, provider=descriptor.id)
        settings = self.config.generation_settings(descriptor, adapter.defaults)
        body = adapter.translate(descriptor, conversation, system_prompt, settings)

        logger.info(f"Dispatching {len(conversation)} messages to {descriptor.id}")
        response = await self._post(descriptor, adapter.auth, secret, descriptor.endpoint, body)
        if isinstance(response, DispatchFailure):
            return response

        try:
            normalized = adapter.normalize(response.json())
        except _PARSE_ERRORS as e:
            logger.warning(f"Malformed response from {descriptor.id}: {e}")
            return _failure(
                descriptor,
                FailureKind.MALFORMED_RESPONSE,
                f"{descriptor.name} returned an unexpected response",
                status_code=response.status_code,
            )

        logger.info(f"{descriptor.id} responded ({normalized.tokens_consumed} tokens)")
        return DispatchSuccess(
            content=normalized.content,
            tokens_consumed=normalized.tokens_consumed,
            provider_id=descriptor.id,
            provider_name=descriptor.name,
        )

    # Images

    async def generate_image(
        self,
        prompt: str,
        size: str = DEFAULT_IMAGE_SIZE,
        provider_id: str = DEFAULT_IMAGE_PROVIDER,
        quality: Optional[str] = None,
    ) -> ImageResult:
        """
        Generate a single image.

        Args:
            prompt: Text description of the image
            size: "<width>x<height>" from the vendor's allow-list
            provider_id: Image-capable provider
            quality: Override for the configured image quality

        Returns:
            ImageSuccess with the asset URL, or a DispatchFailure
        """
        with tracer.start_as_current_span("gateway.generate_image") as span:
            span.set_attribute("gateway.provider_id", provider_id)
            result = await self._generate_image(prompt, size, provider_id, quality)
            _record_outcome(span, result, self.registry.get(provider_id))
            return result

    async def _generate_image(
        self,
        prompt: str,
        size: str,
        provider_id: str,
        quality: Optional[str],
    ) -> ImageResult:
        descriptor = self.registry.get(provider_id)
        if descriptor is None:
            return _unknown_provider(provider_id)

        if descriptor.capability != ProviderCapability.IMAGE:
            return _failure(
                descriptor,
                FailureKind.INVALID_REQUEST,
                f"{descriptor.name} does not generate images",
            )

        adapter = get_image_adapter(descriptor.vendor, provider=descriptor.id)
        if not prompt or not prompt.strip():
            return _failure(descriptor, FailureKind.INVALID_REQUEST, "Image prompt is empty")
        if size not in adapter.sizes:
            return _failure(
                descriptor,
                FailureKind.INVALID_REQUEST,
                f"Unsupported image size {size!r}; expected one of {', '.join(adapter.sizes)}",
            )

        secret = self._credential_for(descriptor)
        if isinstance(secret, DispatchFailure):
            return secret

        body = adapter.translate(descriptor, prompt, size, quality or self.config.image_quality)
        logger.info(f"Generating {size} image with {descriptor.id}")
        response = await self._post(descriptor, adapter.auth, secret, descriptor.endpoint, body)
        if isinstance(response, DispatchFailure):
            return response

        try:
            url, revised_prompt = adapter.normalize(response.json())
        except _PARSE_ERRORS as e:
            logger.warning(f"Malformed image response from {descriptor.id}: {e}")
            return _failure(
                descriptor,
                FailureKind.MALFORMED_RESPONSE,
                f"{descriptor.name} returned an unexpected response",
                status_code=response.status_code,
            )

        return ImageSuccess(
            url=url,
            revised_prompt=revised_prompt,
            provider_id=descriptor.id,
            provider_name=descriptor.name,
        )

    # Streaming

    async def stream(
        self,
        provider_id: str,
        conversation: Conversation,
        system_prompt: Optional[str] = None,
    ) -> AsyncIterator[StreamEvent]:
        """
        Stream a completion as text chunks.

        Yields StreamChunk items followed by one StreamSummary. Any failure is
        yielded as a single DispatchFailure that ends the sequence. The
        sequence cannot be restarted; call again for a new request.
        """
        span = tracer.start_span("gateway.stream")
        span.set_attribute("gateway.provider_id", provider_id)
        outcome: Optional[StreamEvent] = None
        try:
            async for event in self._stream(provider_id, conversation, system_prompt):
                outcome = event
                yield event
        finally:
            if outcome is not None and not isinstance(outcome, StreamChunk):
                _record_outcome(span, outcome, self.registry.get(provider_id))
            span.end()

    async def _stream(
        self,
        provider_id: str,
        conversation: Conversation,
        system_prompt: Optional[str],
    ) -> AsyncIterator[StreamEvent]:
        resolved = self._resolve(provider_id)
        if isinstance(resolved, DispatchFailure):
            yield resolved
            return
        descriptor, secret = resolved

        if not descriptor.supports_streaming:
            yield _failure(
                descriptor,
                FailureKind.INVALID_REQUEST,
                f"{descriptor.name} does not support streaming",
            )
            return

        adapter = get_adapter(descriptor.vendor, provider=descriptor.id)
        settings = self.config.generation_settings(descriptor, adapter.defaults)
        request = adapter.stream_request(
            descriptor, adapter.translate(descriptor, conversation, system_prompt, settings)
        )
        headers, params = _auth(adapter.auth, secret)
        params.update(request.params)

        if not self._client:
            await self.connect()

        usage: Dict[str, Any] = {}
        logger.info(f"Streaming {len(conversation)} messages to {descriptor.id}")
        try:
            async with self._client.stream(
                "POST",
                request.url,
                json=request.body,
                headers=headers,
                params=params,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    yield _rejected(descriptor, response)
                    return

                async for event in _sse_events(response):
                    if "error" in event or event.get("type") == "error":
                        yield _stream_error(descriptor, event)
                        return
                    try:
                        text, fragment = adapter.parse_stream_event(event)
                    except _PARSE_ERRORS as e:
                        logger.warning(f"Malformed stream event from {descriptor.id}: {e}")
                        continue
                    usage.update(fragment)
                    if text:
                        yield StreamChunk(text=text)

        except httpx.TimeoutException:
            yield _transport_failure(descriptor, f"Request to {descriptor.name} timed out")
            return
        except httpx.RequestError as e:
            yield _transport_failure(descriptor, f"Could not reach {descriptor.name}: {e}")
            return

        try:
            tokens = adapter.count_tokens(usage)
        except _PARSE_ERRORS as e:
            logger.warning(f"Stream from {descriptor.id} ended without usage: {e}")
            yield _failure(
                descriptor,
                FailureKind.MALFORMED_RESPONSE,
                f"{descriptor.name} stream ended without a usage summary",
            )
            return

        yield StreamSummary(
            tokens_consumed=tokens,
            provider_id=descriptor.id,
            provider_name=descriptor.name,
        )

    # Shared steps

    def _resolve(
        self, provider_id: str
    ) -> Union[Tuple[ProviderDescriptor, Optional[str]], DispatchFailure]:
        """Descriptor and credential for a provider, or the pre-flight failure."""
        descriptor = self.registry.get(provider_id)
        if descriptor is None:
            return _unknown_provider(provider_id)

        secret = self._credential_for(descriptor)
        if isinstance(secret, DispatchFailure):
            return secret
        return descriptor, secret

    def _credential_for(
        self, descriptor: ProviderDescriptor
    ) -> Union[Optional[str], DispatchFailure]:
        if not descriptor.requires_credential:
            return None

        secret = self.credentials.get_credential(descriptor.vendor.value)
        if not secret:
            logger.warning(f"No {descriptor.vendor.value} credential for {descriptor.id}")
            return _failure(
                descriptor,
                FailureKind.MISSING_CREDENTIAL,
                f"{descriptor.company} API key not configured",
            )
        return secret

    async def _post(
        self,
        descriptor: ProviderDescriptor,
        auth: AuthScheme,
        secret: Optional[str],
        url: str,
        body: Dict[str, Any],
    ) -> Union[httpx.Response, DispatchFailure]:
        """Issue the single outbound request for a call."""
        if not self._client:
            await self.connect()

        headers, params = _auth(auth, secret)
        try:
            response = await self._client.post(url, json=body, headers=headers, params=params)
        except httpx.TimeoutException:
            return _transport_failure(descriptor, f"Request to {descriptor.name} timed out")
        except httpx.RequestError as e:
            return _transport_failure(descriptor, f"Could not reach {descriptor.name}: {e}")

        if not response.is_success:
            return _rejected(descriptor, response)
        return response


def _auth(auth: AuthScheme, secret: Optional[str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    if secret is None:
        return {"Content-Type": "application/json"}, {}
    return auth.apply(secret)


async def _sse_events(response: httpx.Response) -> AsyncIterator[Dict[str, Any]]:
    """Decode server-sent "data:" lines into JSON objects."""
    async for line in response.aiter_lines():
        if not line.startswith("data:"):
            continue
        data = line[5:].strip()
        if data == "[DONE]":
            break
        try:
            event = json.loads(data)
        except json.JSONDecodeError:
            continue
        if isinstance(event, dict):
            yield event


def _failure(
    descriptor: ProviderDescriptor,
    kind: FailureKind,
    message: str,
    status_code: Optional[int] = None,
) -> DispatchFailure:
    return DispatchFailure(
        kind=kind,
        message=message,
        provider_id=descriptor.id,
        provider_name=descriptor.name,
        status_code=status_code,
    )


def _unknown_provider(provider_id: str) -> DispatchFailure:
    logger.warning(f"Unknown provider requested: {provider_id}")
    return DispatchFailure(
        kind=FailureKind.UNKNOWN_PROVIDER,
        message=f"Provider {provider_id} not found",
        provider_id=provider_id,
    )


def _transport_failure(descriptor: ProviderDescriptor, message: str) -> DispatchFailure:
    logger.warning(message)
    return _failure(descriptor, FailureKind.TRANSPORT_ERROR, message)


def _rejected(descriptor: ProviderDescriptor, response: httpx.Response) -> DispatchFailure:
    """Failure for a non-2xx response, with the vendor's message when parseable."""
    try:
        body = response.json()
    except ValueError:
        body = None

    message = extract_error_message(body) or (
        f"{descriptor.name} API request failed (HTTP {response.status_code})"
    )
    logger.warning(f"{descriptor.id} rejected request: HTTP {response.status_code}")
    return _failure(
        descriptor,
        FailureKind.PROVIDER_REJECTED,
        message,
        status_code=response.status_code,
    )


def _stream_error(descriptor: ProviderDescriptor, event: Dict[str, Any]) -> DispatchFailure:
    """Failure for an error event sent after the stream opened."""
    message = extract_error_message(event) or f"{descriptor.name} stream was aborted"
    logger.warning(f"{descriptor.id} sent an error event mid-stream")
    return _failure(descriptor, FailureKind.PROVIDER_REJECTED, message)


def _record_outcome(
    span: Any,
    result: StreamEvent,
    descriptor: Optional[ProviderDescriptor],
) -> None:
    if descriptor is not None:
        span.set_attribute("gateway.vendor", descriptor.vendor.value)
    if isinstance(result, DispatchFailure):
        span.set_attribute("gateway.outcome", result.kind.value)
    else:
        span.set_attribute("gateway.outcome", "success")
