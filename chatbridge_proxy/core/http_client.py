"""
Outbound HTTP client construction.

The application keeps one `httpx.AsyncClient` per process (created in the
lifespan hook, stored on `app.state.http_client`) so connection pools are
reused across requests.
"""
import logging
from typing import Optional

import httpx

from .config import ProxySettings

logger = logging.getLogger("ChatBridge.Core.HTTPClient")


def create_http_client(
    settings: ProxySettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    - timeout: connect/write/pool 用 api_timeout，read 用 read_timeout（模型生成较慢）
    - limits: 连接池上限
    - http2: 启用 HTTP/2（服务端支持时）
    - transport: 测试时注入 httpx.MockTransport
    """
    logger.info(
        f"Initializing HTTP client. Connect timeout: {settings.api_timeout}s, "
        f"Read timeout: {settings.read_timeout}s, Max connections: {settings.max_connections}"
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.api_timeout, read=settings.read_timeout),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=20,
            keepalive_expiry=60.0,
        ),
        http2=transport is None,
        follow_redirects=True,
        trust_env=True,
        transport=transport,
    )


async def close_http_client(client: Optional[httpx.AsyncClient]) -> None:
    if client is None:
        logger.warning("HTTP client not found, nothing to close.")
        return
    if client.is_closed:
        logger.info("HTTP client was already closed.")
        return
    try:
        await client.aclose()
        logger.info("HTTP client closed.")
    except Exception as e:
        logger.error(f"Error while closing HTTP client: {e}", exc_info=True)
