"""Redis Pub/Sub publisher for order events.

Published after the transition has committed. Delivery (email, push, in-app)
belongs to subscribers of ORDER_EVENTS_CHANNEL.
"""
import json
import logging

from redis.exceptions import RedisError

from config.settings import settings
from src.mk_common.redis_client import get_redis
from src.mk_order.domain.events import OrderEvent

logger = logging.getLogger(__name__)


class RedisOrderEventPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.ORDER_EVENTS_CHANNEL

    async def publish(self, event: OrderEvent) -> None:
        message = json.dumps(event.to_dict(), default=str)
        try:
            redis = await get_redis()
            await redis.publish(self._channel, message)
        except (RedisError, OSError):
            # The transition is already durable; subscribers can resync from the timeline.
            logger.warning(
                "Order event not published: type=%s order=%s",
                event.event_type,
                event.order_id,
                exc_info=True,
            )
