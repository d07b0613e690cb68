from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..services.mime import build_data_url, split_data_url

# --- Incoming content parts (wire format sent by the front-end) ---

class BaseIncomingContentPart(BaseModel):
    type: str
    model_config = {"populate_by_name": True}

class TextContentPart(BaseIncomingContentPart):
    type: Literal["text"] = "text"
    text: str

class ImageUrlValue(BaseModel):
    url: str

class ImageUrlContentPart(BaseIncomingContentPart):
    type: Literal["image_url"] = "image_url"
    image_url: ImageUrlValue

class InlineDataContentPart(BaseIncomingContentPart):
    type: Literal["inline_data"] = "inline_data"
    mime_type: str = Field(alias="mimeType")
    base64_data: str = Field(alias="base64Data")

IncomingContentPart = Annotated[
    Union[
        TextContentPart,
        ImageUrlContentPart,
        InlineDataContentPart,
    ],
    Field(discriminator="type")
]

# --- Canonical content ---

class ImageRef(BaseModel):
    """Inline image; `base64_data` never carries the `data:<mime>;base64,` prefix."""
    mime_type: str = Field(alias="mimeType")
    base64_data: str = Field(alias="base64Data")
    model_config = {"populate_by_name": True}

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageRef":
        mime_type, payload = split_data_url(data_url)
        return cls(mime_type=mime_type, base64_data=payload)

    def to_data_url(self) -> str:
        return build_data_url(self.mime_type, self.base64_data)

ContentPart = Union[TextContentPart, ImageRef]


def to_canonical_part(part: Any) -> ContentPart:
    if isinstance(part, ImageUrlContentPart):
        return ImageRef.from_data_url(part.image_url.url)
    if isinstance(part, InlineDataContentPart):
        return ImageRef(mime_type=part.mime_type, base64_data=part.base64_data)
    return part


class ChatMessage(BaseModel):
    # 角色在入口不做限制，未知角色交给 normalizer 处理
    role: str
    content: Union[str, List[IncomingContentPart]]
    model_config = {"populate_by_name": True}

    def canonical_parts(self) -> List[ContentPart]:
        if isinstance(self.content, str):
            return [TextContentPart(text=self.content)]
        return [to_canonical_part(p) for p in self.content]

    def text_content(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextContentPart))


class ChatRelayRequest(BaseModel):
    contents: Optional[List[IncomingContentPart]] = None
    messages: Optional[List[ChatMessage]] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = Field(None, alias="maxTokens", gt=0)
    temperature: Optional[float] = Field(None, ge=0.0, le=2.0)
    model_config = {"populate_by_name": True}

    def has_content(self) -> bool:
        return bool(self.contents) or bool(self.messages)

# --- Envelopes ---

class ErrorKind(str, Enum):
    CONFIGURATION_ERROR = "configuration_error"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    BAD_REQUEST = "bad_request"
    INVALID_API_KEY = "invalid_api_key"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    PERMISSION_DENIED = "permission_denied"
    MODEL_UNAVAILABLE = "model_unavailable"
    RATE_LIMITED = "rate_limited"
    PROVIDER_ERROR = "provider_error"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    NO_CANDIDATES = "no_candidates"


class ErrorEnvelope(BaseModel):
    status_code: int
    kind: ErrorKind
    user_message: str
    details: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.user_message, "error": self.kind.value}
        if self.details:
            body["details"] = self.details
        return body


class ResponseEnvelope(BaseModel):
    text: str
    model_id: Optional[str] = None
    usage_info: Optional[Dict[str, Any]] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"response": self.text}
        if self.model_id:
            body["model"] = self.model_id
        if self.usage_info:
            body["usage"] = self.usage_info
        return body
