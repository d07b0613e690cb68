# -*- coding: utf-8 -*-
"""
Provider adapters.

`build_adapter(settings)` returns the adapter for the configured provider.
"""
from ...core.config import SUPPORTED_PROVIDERS, ProxySettings
from .base import Extraction, OutboundRequest, ProviderAdapter, parse_error_body
from .deepseek import DeepSeekAdapter
from .gemini import GeminiAdapter

_ADAPTERS = {
    "deepseek": DeepSeekAdapter,
    "gemini": GeminiAdapter,
}


def build_adapter(settings: ProxySettings) -> ProviderAdapter:
    adapter_cls = _ADAPTERS.get(settings.provider)
    if adapter_cls is None:
        raise ValueError(
            f"Unsupported CHAT_PROVIDER '{settings.provider}', expected one of {', '.join(SUPPORTED_PROVIDERS)}"
        )
    return adapter_cls(settings)


__all__ = [
    "build_adapter",
    "DeepSeekAdapter",
    "GeminiAdapter",
    "ProviderAdapter",
    "OutboundRequest",
    "Extraction",
    "parse_error_body",
]
