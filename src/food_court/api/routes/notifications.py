"""
SSE-поток изменений заказов покупателя.

Подписка на канал orders:<user_id>; каждое сообщение уходит клиенту
как event: order_update. Поток не завершается сам, пока клиент подключён.
"""
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from food_court.config import settings
from food_court.redis_client import get_redis
from food_court.security import Principal, require_customer
from food_court.services.notifications import channel_for

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/notifications", tags=["notifications"])


async def _sse_generator(user_id: str, request: Request) -> AsyncGenerator[str, None]:
    channel = channel_for(user_id)
    pubsub = get_redis().pubsub()
    await pubsub.subscribe(channel)

    try:
        yield ": connected\n\n"

        while True:
            if await request.is_disconnected():
                break

            message = await pubsub.get_message(
                ignore_subscribe_messages=True,
                timeout=settings.SSE_KEEPALIVE_SECONDS,
            )
            if message and message["type"] == "message":
                yield f"event: order_update\ndata: {message['data']}\n\n"
            else:
                yield ": keepalive\n\n"
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
        logger.debug("SSE stream for %s closed", user_id)


@router.get("/stream")
async def stream_notifications(request: Request, principal: Principal = Depends(require_customer)):
    """
    EventSource-эндпоинт для клиента.
    """
    return StreamingResponse(
        _sse_generator(principal.id, request),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "Connection": "keep-alive",
        },
    )
