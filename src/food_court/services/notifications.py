"""
Рассылка изменений заказа покупателю через Redis pub/sub.

Одно событие на переход, канал orders:<user_id>. Доставка не влияет на
переход: к моменту публикации заказ уже закоммичен, ошибки только логируются.
"""
import logging

from food_court.config import settings
from food_court.redis_client import get_redis
from food_court.schemas.order import OrderRead

logger = logging.getLogger(__name__)


def channel_for(user_id: str) -> str:
    return f"{settings.NOTIFICATION_CHANNEL_PREFIX}{user_id}"


async def publish_order_update(order: OrderRead) -> bool:
    channel = channel_for(order.user_id)
    try:
        redis = get_redis()
        await redis.publish(channel, order.model_dump_json())
    except Exception as exc:
        logger.warning("Order update %s not delivered to %s: %s", order.order_id, channel, exc)
        return False
    logger.debug("Published %s (%s) to %s", order.order_id, order.status.value, channel)
    return True
