# -*- coding: utf-8 -*-
"""
Gemini REST adapter (generateContent).

- Role-tagged messages are normalized in order; user images become
  `inlineData` parts carrying the raw base64 payload.
- When the payload is built, system messages join the bundled system
  instruction in `systemInstruction`, and `assistant` turns become `model`.
- The credential is sent as the `key` query parameter.
- A response without candidates is reported as a `no_candidates` error.
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
from ..system_prompt import load_system_instruction
from .base import (
    EMPTY_GENERATION_ERROR,
    Extraction,
    OutboundRequest,
    ProviderAdapter,
)

logger = logging.getLogger("ChatBridge.Services.Adapters.Gemini")

GEMINI_ROLE_BY_ROLE = {"user": "user", "assistant": "model"}


def part_to_gemini(part: ContentPart) -> Dict[str, Any]:
    if isinstance(part, ImageRef):
        return {"inlineData": {"mimeType": part.mime_type, "data": part.base64_data}}
    return {"text": part.text}


class GeminiAdapter(ProviderAdapter):
    name = "gemini"
    display_name = "Gemini"
    credential_env = "GEMINI_API_KEY"
    native_field = "messages"
    empty_generation_policy = EMPTY_GENERATION_ERROR

    @property
    def default_model(self) -> str:
        return self.settings.gemini_model

    @property
    def max_output_tokens(self) -> int:
        return self.settings.gemini_max_output_tokens

    def normalize_contents(self, parts: Sequence[ContentPart]) -> List[Dict[str, Any]]:
        return [{"role": "user", "parts": [part_to_gemini(p) for p in parts]}]

    def normalize_messages(self, messages: Sequence[ChatMessage], request_id: str = "-") -> List[Dict[str, Any]]:
        normalized: List[Dict[str, Any]] = []
        for i, msg in enumerate(messages):
            if not self.accept_role(msg.role, i, request_id):
                continue
            if msg.role in ("system", "assistant"):
                normalized.append({"role": msg.role, "parts": [{"text": msg.text_content()}]})
            else:
                normalized.append({"role": "user", "parts": [part_to_gemini(p) for p in msg.canonical_parts()]})
        return normalized

    def build_request(self, request: ChatRelayRequest, api_key: str, request_id: str) -> OutboundRequest:
        field_name, items = self.select_input(request)
        if field_name == "contents":
            normalized = self.normalize_contents(self.canonical_parts(items))
        else:
            normalized = self.normalize_messages(items, request_id)

        system_texts = [load_system_instruction(self.settings.system_instruction_file)]
        contents: List[Dict[str, Any]] = []
        for msg in normalized:
            if msg["role"] == "system":
                system_texts.extend(p["text"] for p in msg["parts"] if p.get("text"))
            else:
                contents.append({"role": GEMINI_ROLE_BY_ROLE[msg["role"]], "parts": msg["parts"]})

        self.require_messages(contents)

        model = self.resolve_model(request)
        payload: Dict[str, Any] = {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": "\n\n".join(t for t in system_texts if t)}]},
            "generationConfig": {
                "temperature": self.resolve_temperature(request),
                "topP": self.settings.top_p,
                "topK": self.settings.top_k,
                "maxOutputTokens": self.resolve_max_tokens(request),
            },
        }
        base = self.settings.gemini_api_base_url.rstrip("/")
        url = f"{base}/v1beta/models/{model}:generateContent"
        logger.debug(f"RID-{request_id}: Gemini payload built from '{field_name}', contents={len(contents)}, model={model}")
        return OutboundRequest(
            url=url,
            model=model,
            payload=payload,
            headers={"Content-Type": "application/json"},
            params={"key": api_key},
        )

    def extract_text(self, data: Dict[str, Any]) -> Extraction:
        model_id = data.get("modelVersion")
        usage = data.get("usageMetadata") if isinstance(data.get("usageMetadata"), dict) else None

        candidates = data.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            feedback = data.get("promptFeedback") if isinstance(data.get("promptFeedback"), dict) else {}
            block_reason = feedback.get("blockReason")
            return Extraction(
                text=self.fallback_text,
                has_generation=False,
                model_id=model_id,
                usage=usage,
                details=f"blockReason={block_reason}" if block_reason else None,
            )

        first = candidates[0] if isinstance(candidates[0], dict) else {}
        content = first.get("content") if isinstance(first.get("content"), dict) else {}
        parts = content.get("parts") if isinstance(content.get("parts"), list) else []
        texts = [
            p["text"] for p in parts
            if isinstance(p, dict) and isinstance(p.get("text"), str) and not p.get("thought")
        ]
        return Extraction(text=self.with_fallback("\n".join(texts)), model_id=model_id, usage=usage)

    def classify_status(self, status_code: int, body: Dict[str, Any]) -> Tuple[ErrorKind, MessageKey]:
        if status_code == 400 and _has_error_reason(body, "API_KEY_INVALID"):
            return ErrorKind.INVALID_API_KEY, MessageKey.INVALID_API_KEY
        if status_code == 403:
            return ErrorKind.PERMISSION_DENIED, MessageKey.PERMISSION_DENIED
        return super().classify_status(status_code, body)


def _has_error_reason(body: Dict[str, Any], reason: str) -> bool:
    error = body.get("error")
    if not isinstance(error, dict):
        return False
    for detail in error.get("details") or []:
        if isinstance(detail, dict) and detail.get("reason") == reason:
            return True
    return reason in str(error.get("message", ""))
