# -*- coding: utf-8 -*-
"""
DeepSeek adapter (OpenAI-compatible chat completions).

- Flat `contents` become a single user message whose content is the list of
  parts; images are re-assembled into data URLs (`image_url` parts).
- Role-tagged `messages` are passed through in the same OpenAI shape.
- Credential goes into the `Authorization: Bearer` header.
- A response without choices is answered with the fallback text (HTTP 200).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence, Tuple

from ...models.api_models import (
    ChatMessage,
    ChatRelayRequest,
    ContentPart,
    ErrorKind,
    ImageRef,
)
from ..messages import MessageKey
from .base import (
    EMPTY_GENERATION_FALLBACK,
    Extraction,
    OutboundRequest,
    ProviderAdapter,
)

logger = logging.getLogger("ChatBridge.Services.Adapters.DeepSeek")


def part_to_openai(part: ContentPart) -> Dict[str, Any]:
    if isinstance(part, ImageRef):
        return {"type": "image_url", "image_url": {"url": part.to_data_url()}}
    return {"type": "text", "text": part.text}


class DeepSeekAdapter(ProviderAdapter):
    name = "deepseek"
    display_name = "DeepSeek"
    credential_env = "DEEPSEEK_API_KEY"
    native_field = "contents"
    empty_generation_policy = EMPTY_GENERATION_FALLBACK

    @property
    def default_model(self) -> str:
        return self.settings.deepseek_model

    @property
    def max_output_tokens(self) -> int:
        return self.settings.deepseek_max_output_tokens

    def normalize_contents(self, parts: Sequence[ContentPart]) -> List[Dict[str, Any]]:
        return [{"role": "user", "content": [part_to_openai(p) for p in parts]}]

    def normalize_messages(self, messages: Sequence[ChatMessage], request_id: str = "-") -> List[Dict[str, Any]]:
        openai_messages: List[Dict[str, Any]] = []
        for i, msg in enumerate(messages):
            if not self.accept_role(msg.role, i, request_id):
                continue
            if msg.role in ("system", "assistant"):
                openai_messages.append({"role": msg.role, "content": msg.text_content()})
            elif isinstance(msg.content, str):
                openai_messages.append({"role": "user", "content": msg.content})
            else:
                parts = self.canonical_parts(msg.content)
                openai_messages.append({"role": "user", "content": [part_to_openai(p) for p in parts]})
        return openai_messages

    def build_request(self, request: ChatRelayRequest, api_key: str, request_id: str) -> OutboundRequest:
        field_name, items = self.select_input(request)
        if field_name == "contents":
            messages = self.normalize_contents(self.canonical_parts(items))
        else:
            messages = self.normalize_messages(items, request_id)
        self.require_messages(messages)

        model = self.resolve_model(request)
        payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": False,
            "temperature": self.resolve_temperature(request),
            "top_p": self.settings.top_p,
            "max_tokens": self.resolve_max_tokens(request),
        }
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        logger.debug(f"RID-{request_id}: DeepSeek payload built from '{field_name}', messages={len(messages)}, model={model}")
        return OutboundRequest(url=self.settings.deepseek_api_url, model=model, payload=payload, headers=headers)

    def extract_text(self, data: Dict[str, Any]) -> Extraction:
        model_id = data.get("model")
        usage = data.get("usage") if isinstance(data.get("usage"), dict) else None

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return Extraction(text=self.fallback_text, has_generation=False, model_id=model_id, usage=usage)

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") if isinstance(first.get("message"), dict) else {}
        content = message.get("content")
        text = content if isinstance(content, str) else ""
        return Extraction(text=self.with_fallback(text), model_id=model_id, usage=usage)

    def classify_status(self, status_code: int, body: Dict[str, Any]) -> Tuple[ErrorKind, MessageKey]:
        if status_code == 402:
            return ErrorKind.INSUFFICIENT_BALANCE, MessageKey.INSUFFICIENT_BALANCE
        return super().classify_status(status_code, body)
