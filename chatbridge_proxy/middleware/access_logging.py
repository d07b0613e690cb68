import time
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request

logger = logging.getLogger("ChatBridge.AccessLog")

# 排除健康检查等探活路径
EXCLUDED_PATHS = ("/health", "/favicon.ico")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "-"


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000
        if request.url.path not in EXCLUDED_PATHS:
            logger.info(
                f"{client_ip(request)} {request.method} {request.url.path} -> {response.status_code} "
                f"({process_time:.1f} ms) ua={request.headers.get('user-agent', '')}"
            )
        return response
