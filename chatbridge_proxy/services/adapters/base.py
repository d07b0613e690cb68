# -*- coding: utf-8 -*-
"""
Provider adapter interface.

An adapter owns everything provider-specific:

- normalizing the caller's messages into the provider wire format,
- building the outbound request (URL, headers, query params, payload),
- reading the generated text out of the provider response,
- classifying provider error responses into localized error envelopes.

The relay service only talks to this interface, so adding a provider means
adding one subclass.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import orjson

from ...core.config import ProxySettings
from ...core.exceptions import ClientInputError, EmptyGenerationError
from ...models.api_models import (
    ChatMessage,
    ChatRelayRequest,
    ContentPart,
    ErrorEnvelope,
    ErrorKind,
    ResponseEnvelope,
    to_canonical_part,
)
from ..messages import MessageKey, get_message

logger = logging.getLogger("ChatBridge.Services.Adapters")

KNOWN_ROLES = ("system", "user", "assistant")

EMPTY_GENERATION_FALLBACK = "fallback"
EMPTY_GENERATION_ERROR = "error"

MAX_DETAILS_LENGTH = 500


@dataclass
class OutboundRequest:
    url: str
    model: str
    payload: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)


@dataclass
class Extraction:
    """
    Result of reading a provider response.

    `text` is never empty: when the provider produced nothing usable it holds
    the localized fallback. `has_generation` is False only when the response
    carried no candidate/choice at all.
    """
    text: str
    has_generation: bool = True
    model_id: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    details: Optional[str] = None


def parse_error_body(raw: bytes) -> Union[Dict[str, Any], str]:
    """
    Parses a provider error body. An empty body counts as an empty JSON object;
    anything that is not a JSON object comes back as decoded text.
    """
    if not raw or not raw.strip():
        return {}
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return raw.decode("utf-8", errors="ignore")
    if isinstance(parsed, dict):
        return parsed
    return raw.decode("utf-8", errors="ignore")


def details_from_error_body(body: Union[Dict[str, Any], str], reason_phrase: str = "") -> Optional[str]:
    if isinstance(body, str):
        return body.strip()[:MAX_DETAILS_LENGTH] or reason_phrase or None
    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])[:MAX_DETAILS_LENGTH]
    if isinstance(error, str) and error:
        return error[:MAX_DETAILS_LENGTH]
    if body.get("message"):
        return str(body["message"])[:MAX_DETAILS_LENGTH]
    return reason_phrase or None


class ProviderAdapter(ABC):
    name: str = ""
    display_name: str = ""
    credential_env: str = ""
    # 请求体中该 provider 原生使用的字段（contents / messages）
    native_field: str = "messages"
    empty_generation_policy: str = EMPTY_GENERATION_FALLBACK

    def __init__(self, settings: ProxySettings):
        self.settings = settings
        self.locale = settings.message_locale
        self.drop_unknown_roles = settings.drop_unknown_roles

    # --- helpers -------------------------------------------------------

    def message(self, key: MessageKey, **fmt: str) -> str:
        return get_message(key, self.locale, provider=self.display_name, **fmt)

    @property
    def fallback_text(self) -> str:
        return self.message(MessageKey.FALLBACK_TEXT)

    @property
    @abstractmethod
    def default_model(self) -> str:
        ...

    @property
    @abstractmethod
    def max_output_tokens(self) -> int:
        ...

    def resolve_model(self, request: ChatRelayRequest) -> str:
        return (request.model or "").strip() or self.default_model

    def resolve_max_tokens(self, request: ChatRelayRequest) -> int:
        cap = self.max_output_tokens
        if request.max_tokens is None:
            return cap
        return min(request.max_tokens, cap)

    def resolve_temperature(self, request: ChatRelayRequest) -> float:
        if request.temperature is None:
            return self.settings.temperature
        return request.temperature

    def accept_role(self, role: str, index: int, request_id: str = "-") -> bool:
        """True when the message should be emitted; unknown roles are dropped or rejected."""
        if role in KNOWN_ROLES:
            return True
        if self.drop_unknown_roles:
            logger.warning(f"RID-{request_id}: Dropping message {index} with unsupported role '{role}'.")
            return False
        raise ClientInputError(self.message(MessageKey.UNSUPPORTED_ROLE, role=role))

    @staticmethod
    def canonical_parts(parts: Sequence[Any]) -> List[ContentPart]:
        return [to_canonical_part(p) for p in parts]

    def require_messages(self, messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Rejects a translation that left nothing to send."""
        if not messages:
            raise ClientInputError(self.message(MessageKey.MISSING_CONTENTS))
        return messages

    def select_input(self, request: ChatRelayRequest) -> Tuple[str, list]:
        """Picks which request field to translate, preferring the provider's native one."""
        if self.native_field == "contents" and request.contents:
            return "contents", request.contents
        if request.messages:
            return "messages", request.messages
        return "contents", request.contents or []

    # --- provider contract ---------------------------------------------

    @abstractmethod
    def normalize_contents(self, parts: Sequence[ContentPart]) -> List[Dict[str, Any]]:
        """Flat content parts (one implicit user turn) to provider messages."""

    @abstractmethod
    def normalize_messages(self, messages: Sequence[ChatMessage], request_id: str = "-") -> List[Dict[str, Any]]:
        """Role-tagged messages to provider messages, order preserved."""

    @abstractmethod
    def build_request(self, request: ChatRelayRequest, api_key: str, request_id: str) -> OutboundRequest:
        ...

    @abstractmethod
    def extract_text(self, data: Dict[str, Any]) -> Extraction:
        ...

    def classify_status(self, status_code: int, body: Dict[str, Any]) -> Tuple[ErrorKind, MessageKey]:
        if status_code == 401:
            return ErrorKind.INVALID_API_KEY, MessageKey.INVALID_API_KEY
        if status_code == 429:
            return ErrorKind.RATE_LIMITED, MessageKey.RATE_LIMITED
        if status_code == 404:
            return ErrorKind.MODEL_UNAVAILABLE, MessageKey.MODEL_UNAVAILABLE
        return ErrorKind.PROVIDER_ERROR, MessageKey.GENERIC_FAILURE

    def classify_error(
        self,
        status_code: int,
        body: Union[Dict[str, Any], str],
        model: Optional[str] = None,
        reason_phrase: str = "",
    ) -> ErrorEnvelope:
        details = details_from_error_body(body, reason_phrase)
        if isinstance(body, str):
            # 非 JSON 错误体：原文放进 details，统一使用通用提示
            kind, key = ErrorKind.PROVIDER_ERROR, MessageKey.GENERIC_FAILURE
        else:
            kind, key = self.classify_status(status_code, body)

        if key == MessageKey.MODEL_UNAVAILABLE and model:
            user_message = self.message(MessageKey.MODEL_UNAVAILABLE_NAMED, model=model)
        else:
            user_message = self.message(key)

        return ErrorEnvelope(status_code=status_code, kind=kind, user_message=user_message, details=details)

    def to_response_envelope(self, extraction: Extraction) -> ResponseEnvelope:
        """Applies the adapter's empty-generation policy."""
        if not extraction.has_generation and self.empty_generation_policy == EMPTY_GENERATION_ERROR:
            raise EmptyGenerationError(self.message(MessageKey.NO_CANDIDATES), details=extraction.details)
        return ResponseEnvelope(
            text=extraction.text,
            model_id=extraction.model_id,
            usage_info=extraction.usage,
        )

    def with_fallback(self, text: Optional[str]) -> str:
        if text is None or not text.strip():
            return self.fallback_text
        return text
