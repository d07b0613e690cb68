"""
Unit tests for the DeepSeek (OpenAI-compatible) adapter.
"""

import pytest

from chatbridge_proxy.core.exceptions import ClientInputError
from chatbridge_proxy.models.api_models import (
    ChatMessage,
    ChatRelayRequest,
    ErrorKind,
    ImageRef,
    TextContentPart,
)
from chatbridge_proxy.services.adapters import DeepSeekAdapter


@pytest.fixture
def adapter(deepseek_settings) -> DeepSeekAdapter:
    return DeepSeekAdapter(deepseek_settings)


class TestNormalizeContents:
    """Flat contents become one user message."""

    def test_text_and_image_parts_in_order(self, adapter: DeepSeekAdapter) -> None:
        parts = [
            TextContentPart(text="What is shown here?"),
            ImageRef(mime_type="image/png", base64_data="iVBORw0KGgo="),
            TextContentPart(text="Answer briefly."),
        ]

        messages = adapter.normalize_contents(parts)

        assert messages == [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "What is shown here?"},
                    {"type": "image_url", "image_url": {"url": "data:image/png;base64,iVBORw0KGgo="}},
                    {"type": "text", "text": "Answer briefly."},
                ],
            }
        ]

    def test_malformed_image_url_falls_back_to_jpeg(self, adapter: DeepSeekAdapter) -> None:
        request = ChatRelayRequest.model_validate(
            {"contents": [{"type": "image_url", "image_url": {"url": "not-a-data-url"}}]}
        )

        outbound = adapter.build_request(request, "sk-x", "rid")

        part = outbound.payload["messages"][0]["content"][0]
        assert part["image_url"]["url"] == "data:image/jpeg;base64,not-a-data-url"


class TestNormalizeMessages:
    """Role-tagged messages keep the OpenAI shape."""

    def test_roles_and_order_preserved(self, adapter: DeepSeekAdapter) -> None:
        messages = [
            ChatMessage(role="system", content="Be concise."),
            ChatMessage(role="user", content=[{"type": "text", "text": "Hi"}]),
            ChatMessage(role="assistant", content="Hello!"),
            ChatMessage(
                role="user",
                content=[
                    {"type": "inline_data", "mimeType": "image/webp", "base64Data": "UklGR"},
                    {"type": "text", "text": "And this?"},
                ],
            ),
        ]

        result = adapter.normalize_messages(messages)

        assert [m["role"] for m in result] == ["system", "user", "assistant", "user"]
        assert result[0]["content"] == "Be concise."
        assert result[3]["content"] == [
            {"type": "image_url", "image_url": {"url": "data:image/webp;base64,UklGR"}},
            {"type": "text", "text": "And this?"},
        ]

    def test_unknown_roles_dropped(self, adapter: DeepSeekAdapter) -> None:
        messages = [
            ChatMessage(role="tool", content="{}"),
            ChatMessage(role="user", content="Hi"),
        ]

        assert adapter.normalize_messages(messages) == [{"role": "user", "content": "Hi"}]

    def test_unknown_roles_rejected_when_configured(self, settings_factory) -> None:
        adapter = DeepSeekAdapter(settings_factory(drop_unknown_roles=False))

        with pytest.raises(ClientInputError) as exc_info:
            adapter.normalize_messages([ChatMessage(role="tool", content="{}")])

        assert exc_info.value.status_code == 400
        assert "tool" in exc_info.value.user_message


class TestBuildRequest:
    """Outbound request construction."""

    def test_payload_headers_and_fixed_parameters(self, adapter: DeepSeekAdapter) -> None:
        request = ChatRelayRequest.model_validate({"contents": [{"type": "text", "text": "2+2=?"}]})

        outbound = adapter.build_request(request, "sk-secret", "rid")

        assert outbound.url == "https://deepseek.test/v1/chat/completions"
        assert outbound.headers["Authorization"] == "Bearer sk-secret"
        assert outbound.params == {}
        assert outbound.payload["model"] == "deepseek-chat"
        assert outbound.payload["stream"] is False
        assert outbound.payload["temperature"] == 0.7
        assert outbound.payload["max_tokens"] == 4096

    def test_caller_overrides_are_capped(self, adapter: DeepSeekAdapter) -> None:
        request = ChatRelayRequest.model_validate(
            {
                "messages": [{"role": "user", "content": "Hi"}],
                "model": "deepseek-reasoner",
                "max_tokens": 100000,
                "temperature": 0.2,
            }
        )

        outbound = adapter.build_request(request, "sk-secret", "rid")

        assert outbound.model == "deepseek-reasoner"
        assert outbound.payload["max_tokens"] == 4096
        assert outbound.payload["temperature"] == 0.2

    def test_all_messages_dropped_is_missing_contents(self, adapter: DeepSeekAdapter) -> None:
        request = ChatRelayRequest.model_validate({"messages": [{"role": "tool", "content": "x"}]})

        with pytest.raises(ClientInputError) as exc_info:
            adapter.build_request(request, "sk-secret", "rid")

        assert exc_info.value.status_code == 400
        assert exc_info.value.user_message == "Missing chat contents in request body."


class TestExtractText:
    """Response extraction."""

    def test_reads_first_choice(self, adapter: DeepSeekAdapter) -> None:
        extraction = adapter.extract_text(
            {
                "model": "deepseek-chat",
                "choices": [{"message": {"role": "assistant", "content": "4"}}, {"message": {"content": "5"}}],
                "usage": {"total_tokens": 12},
            }
        )

        assert extraction.text == "4"
        assert extraction.has_generation is True
        assert extraction.model_id == "deepseek-chat"
        assert extraction.usage == {"total_tokens": 12}

    @pytest.mark.parametrize("data", [{}, {"choices": []}, {"choices": None}])
    def test_missing_choices_yield_fallback(self, adapter: DeepSeekAdapter, data) -> None:
        extraction = adapter.extract_text(data)

        assert extraction.has_generation is False
        assert extraction.text == adapter.fallback_text

        envelope = adapter.to_response_envelope(extraction)
        assert envelope.text == adapter.fallback_text

    @pytest.mark.parametrize("content", ["", "   \n", None])
    def test_blank_content_yields_fallback(self, adapter: DeepSeekAdapter, content) -> None:
        extraction = adapter.extract_text({"choices": [{"message": {"content": content}}]})

        assert extraction.has_generation is True
        assert extraction.text.startswith("Could not understand the question")


class TestClassifyError:
    """Provider error classification."""

    def test_401_invalid_key(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(401, {"error": {"message": "Authentication Fails"}})

        assert envelope.status_code == 401
        assert envelope.kind == ErrorKind.INVALID_API_KEY
        assert "Invalid API key" in envelope.user_message
        assert envelope.details == "Authentication Fails"

    def test_402_insufficient_balance(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(402, {"error": {"message": "Insufficient Balance"}})

        assert envelope.kind == ErrorKind.INSUFFICIENT_BALANCE
        assert envelope.status_code == 402

    def test_429_rate_limit(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(429, {})

        assert envelope.kind == ErrorKind.RATE_LIMITED
        assert "Rate limit exceeded" in envelope.user_message

    def test_404_names_model(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(404, {"error": {"message": "Model Not Exist"}}, model="deepseek-v9")

        assert envelope.kind == ErrorKind.MODEL_UNAVAILABLE
        assert "deepseek-v9" in envelope.user_message

    def test_other_status_is_generic(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(503, {}, reason_phrase="Service Unavailable")

        assert envelope.kind == ErrorKind.PROVIDER_ERROR
        assert envelope.user_message == "DeepSeek API failed to respond. Please try again later."
        assert envelope.details == "Service Unavailable"

    def test_raw_text_body_is_generic_with_details(self, adapter: DeepSeekAdapter) -> None:
        envelope = adapter.classify_error(429, "<html>Too busy</html>")

        assert envelope.status_code == 429
        assert envelope.kind == ErrorKind.PROVIDER_ERROR
        assert envelope.details == "<html>Too busy</html>"
