"""
Chat relay: the single request handler between the front-end and the provider.

credential check -> method check -> body validation -> payload build ->
one outbound POST -> response or error envelope. No retries.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
import orjson
from pydantic import ValidationError

from ..core.config import ProxySettings
from ..core.exceptions import (
    ClientInputError,
    ConfigurationError,
    ProviderError,
    ProviderUnavailableError,
    RelayError,
)
from ..core.logging_utils import mask_api_key
from ..models.api_models import ChatRelayRequest, ErrorKind, ResponseEnvelope
from .adapters import ProviderAdapter, build_adapter, parse_error_body
from .adapters.base import OutboundRequest
from .messages import MessageKey

logger = logging.getLogger("ChatBridge.Services.Relay")

ALLOWED_METHODS = ("POST",)


@dataclass
class RelayResult:
    status_code: int
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)


def _summarize_validation_error(error: ValidationError, limit: int = 5) -> str:
    items = []
    for err in error.errors()[:limit]:
        loc = ".".join(str(x) for x in err.get("loc", ()))
        items.append(f"{loc}: {err.get('msg')}")
    return "; ".join(items)


class ChatRelayService:
    def __init__(self, settings: ProxySettings, adapter: Optional[ProviderAdapter] = None):
        self.settings = settings
        self.adapter = adapter or build_adapter(settings)

    async def handle(
        self,
        method: str,
        body: bytes,
        http_client: httpx.AsyncClient,
        request_id: Optional[str] = None,
    ) -> RelayResult:
        request_id = request_id or str(uuid.uuid4())
        log_prefix = f"RID-{request_id}"
        try:
            envelope = await self._relay(method, body, http_client, request_id)
        except RelayError as e:
            error_envelope = e.to_envelope()
            error_envelope.details = self._scrub(error_envelope.details)
            log = logger.error if error_envelope.status_code >= 500 else logger.warning
            log(
                f"{log_prefix}: {error_envelope.kind.value} ({error_envelope.status_code}): "
                f"{error_envelope.user_message} | details={error_envelope.details}"
            )
            return RelayResult(error_envelope.status_code, error_envelope.to_body(), dict(e.headers))
        except Exception as e:
            logger.error(f"{log_prefix}: Unexpected relay error: {self._scrub(str(e))}", exc_info=True)
            error = ProviderUnavailableError(
                self.adapter.message(MessageKey.PROVIDER_UNAVAILABLE),
                details=type(e).__name__,
            )
            return RelayResult(error.status_code, error.to_envelope().to_body())

        logger.info(f"{log_prefix}: Relay succeeded. model={envelope.model_id}, chars={len(envelope.text)}")
        return RelayResult(200, envelope.to_body())

    async def _relay(
        self,
        method: str,
        body: bytes,
        http_client: httpx.AsyncClient,
        request_id: str,
    ) -> ResponseEnvelope:
        api_key = self.settings.api_key
        if not api_key:
            raise ConfigurationError(
                self.adapter.message(MessageKey.CONFIGURATION_HINT, env_name=self.adapter.credential_env)
            )

        if (method or "").upper() not in ALLOWED_METHODS:
            raise ClientInputError(
                self.adapter.message(MessageKey.METHOD_NOT_ALLOWED, method=(method or "").upper()),
                status_code=405,
                kind=ErrorKind.METHOD_NOT_ALLOWED,
                headers={"Allow": ", ".join(ALLOWED_METHODS)},
            )

        chat_request = self.parse_body(body)
        outbound = self.adapter.build_request(chat_request, api_key, request_id)
        logger.info(
            f"RID-{request_id}: Relaying to {self.adapter.name} model={outbound.model}, "
            f"key={mask_api_key(api_key)}"
        )
        data = await self._send(outbound, http_client, request_id)
        extraction = self.adapter.extract_text(data)
        if not extraction.has_generation:
            logger.warning(f"RID-{request_id}: {self.adapter.name} returned no candidates. {extraction.details or ''}")
        return self.adapter.to_response_envelope(extraction)

    def parse_body(self, body: bytes) -> ChatRelayRequest:
        missing = ClientInputError(self.adapter.message(MessageKey.MISSING_CONTENTS))
        if not body or not body.strip():
            raise missing
        try:
            raw = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise ClientInputError(self.adapter.message(MessageKey.INVALID_BODY), details=str(e))
        if not isinstance(raw, dict):
            raise ClientInputError(
                self.adapter.message(MessageKey.INVALID_BODY),
                details="Request body must be a JSON object.",
            )
        if not raw.get("contents") and not raw.get("messages"):
            raise missing
        try:
            return ChatRelayRequest.model_validate(raw)
        except ValidationError as e:
            raise ClientInputError(
                self.adapter.message(MessageKey.INVALID_BODY),
                details=_summarize_validation_error(e),
            )

    async def _send(
        self,
        outbound: OutboundRequest,
        http_client: httpx.AsyncClient,
        request_id: str,
    ) -> Dict[str, Any]:
        log_prefix = f"RID-{request_id}"
        try:
            response = await http_client.post(
                outbound.url,
                headers=outbound.headers,
                params=outbound.params or None,
                content=orjson.dumps(outbound.payload),
            )
        except httpx.RequestError as e:
            logger.error(f"{log_prefix}: Request to {self.adapter.name} failed: {type(e).__name__} - {self._scrub(str(e))}")
            raise ProviderUnavailableError(
                self.adapter.message(MessageKey.PROVIDER_UNAVAILABLE),
                details=type(e).__name__,
            )

        if not response.is_success:
            error_body = parse_error_body(response.content)
            logger.error(
                f"{log_prefix}: {self.adapter.name} upstream error {response.status_code}: "
                f"{self._scrub(response.text[:300])}"
            )
            envelope = self.adapter.classify_error(
                response.status_code, error_body, outbound.model, response.reason_phrase
            )
            raise ProviderError.from_envelope(envelope)

        try:
            data = orjson.loads(response.content)
        except orjson.JSONDecodeError:
            raise ProviderUnavailableError(
                self.adapter.message(MessageKey.PROVIDER_UNAVAILABLE),
                details=f"{self.adapter.display_name} returned a non-JSON response.",
            )
        if not isinstance(data, dict):
            raise ProviderUnavailableError(
                self.adapter.message(MessageKey.PROVIDER_UNAVAILABLE),
                details=f"{self.adapter.display_name} returned an unexpected response shape.",
            )
        return data

    def _scrub(self, text: Optional[str]) -> Optional[str]:
        api_key = self.settings.api_key
        if not text or not api_key:
            return text
        return text.replace(api_key, mask_api_key(api_key))
