"""
Pytest configuration and shared fixtures.

Settings are always built by hand with fake credentials, and the outbound
provider is replaced with `httpx.MockTransport`, so no test touches the network
or depends on the developer's environment.
"""

import json
import logging
from typing import Any, Callable, Dict, List

import httpx
import pytest

from chatbridge_proxy.core.config import ProxySettings

FAKE_DEEPSEEK_KEY = "sk-test-deepseek-0123456789"
FAKE_GEMINI_KEY = "AIza-test-gemini-0123456789"

logging.getLogger("ChatBridge").setLevel(logging.DEBUG)


def make_settings(**overrides: Any) -> ProxySettings:
    values: Dict[str, Any] = {
        "provider": "deepseek",
        "deepseek_api_key": FAKE_DEEPSEEK_KEY,
        "deepseek_api_url": "https://deepseek.test/v1/chat/completions",
        "deepseek_model": "deepseek-chat",
        "gemini_api_key": FAKE_GEMINI_KEY,
        "gemini_api_base_url": "https://gemini.test",
        "gemini_model": "gemini-2.0-flash",
        "message_locale": "en",
        "system_instruction_file": None,
        "drop_unknown_roles": True,
        "log_level": "DEBUG",
        "cors_allow_origins": ["*"],
    }
    values.update(overrides)
    return ProxySettings(**values)


class RecordingProvider:
    """Mock provider endpoint: records every request and replays a canned response."""

    def __init__(self, status_code: int = 200, json_body: Any = None, content: bytes = b""):
        self.status_code = status_code
        self.json_body = json_body
        self.content = content
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        return httpx.Response(self.status_code, content=self.content)

    @property
    def last_payload(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def deepseek_settings() -> ProxySettings:
    return make_settings(provider="deepseek")


@pytest.fixture
def gemini_settings() -> ProxySettings:
    return make_settings(provider="gemini")


@pytest.fixture
def settings_factory() -> Callable[..., ProxySettings]:
    return make_settings


@pytest.fixture
def provider_factory() -> Callable[..., RecordingProvider]:
    return RecordingProvider
