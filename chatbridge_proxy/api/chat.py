import logging
import uuid

import httpx
import orjson
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from ..services.relay import ChatRelayService

logger = logging.getLogger("ChatBridge.Routers.Chat")
router = APIRouter()

# 所有方法都进入 relay，由它统一返回 405 + Allow 头
ROUTED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


async def get_http_client(request: Request) -> httpx.AsyncClient:
    client = getattr(request.app.state, "http_client", None)
    if client is None or client.is_closed:
        logger.error("HTTP client not available or closed in app.state.")
        raise HTTPException(status_code=503, detail="Service unavailable: HTTP client not initialized or closed.")
    return client


def get_relay_service(request: Request) -> ChatRelayService:
    return request.app.state.relay_service


@router.api_route("/api/chat", methods=ROUTED_METHODS, summary="AI chat relay", tags=["AI Proxy"])
async def chat_relay_entrypoint(
    request: Request,
    http_client: httpx.AsyncClient = Depends(get_http_client),
    relay: ChatRelayService = Depends(get_relay_service),
) -> Response:
    request_id = str(uuid.uuid4())
    body = await request.body()
    logger.info(f"RID-{request_id}: {request.method} /api/chat, body_bytes={len(body)}")

    result = await relay.handle(request.method, body, http_client, request_id=request_id)
    return Response(
        content=orjson.dumps(result.body),
        status_code=result.status_code,
        headers=result.headers,
        media_type="application/json",
    )
