import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api import chat as chat_router
from .core.config import ProxySettings
from .core.http_client import close_http_client, create_http_client
from .core.logging_utils import mask_api_key, setup_logging
from .middleware import AccessLogMiddleware
from .services.relay import ChatRelayService

logger = logging.getLogger("ChatBridge.Main")


def create_app(
    settings: Optional[ProxySettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or ProxySettings.from_env()
    setup_logging(settings.log_level)

    relay_service = ChatRelayService(settings)

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        logger.info("Lifespan: 应用启动，初始化HTTP客户端...")
        app_instance.state.http_client = create_http_client(settings, transport=transport)
        yield
        logger.info("Lifespan: 应用关闭，开始关闭HTTP客户端...")
        await close_http_client(getattr(app_instance.state, "http_client", None))
        if hasattr(app_instance.state, "http_client"):
            delattr(app_instance.state, "http_client")
        logger.info("Lifespan: 应用关闭流程完成。")

    app = FastAPI(
        title="ChatBridge Proxy",
        description=f"LLM chat relay, version: {settings.app_version}",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.relay_service = relay_service

    app.add_middleware(AccessLogMiddleware)
    # CORS 最后添加，最先执行（预检请求不会进入路由）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins or ["*"],
        allow_credentials=False,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(chat_router.router)

    @app.get("/", status_code=200, include_in_schema=False, tags=["Utilities"])
    async def root():
        return {
            "message": "ChatBridge Proxy is running",
            "version": settings.app_version,
            "provider": settings.provider,
            "status": "ok",
            "endpoints": {"chat": "/api/chat", "health": "/health", "docs": "/docs"},
        }

    @app.get("/health", status_code=200, include_in_schema=False, tags=["Utilities"])
    async def health_check(request: Request):
        client_from_state = getattr(request.app.state, "http_client", None)
        client_status = "ok"
        detail_message = "HTTP client initialized and seems operational."

        if client_from_state is None:
            client_status = "error"
            detail_message = "HTTP client not initialized in app.state."
        elif client_from_state.is_closed:
            client_status = "warning"
            detail_message = "HTTP client in app.state is closed."

        return {
            "status": client_status,
            "detail": detail_message,
            "provider": settings.provider,
            "credential_configured": bool(settings.api_key),
            "app_version": settings.app_version,
        }

    logger.info(
        f"ChatBridge Proxy v{settings.app_version} initialized. provider={settings.provider}, "
        f"model={settings.model}, key={mask_api_key(settings.api_key)}"
    )
    return app


app = create_app()
