"""Event publishers for order-engine domain events.

RedisEventPublisher pushes JSON onto a Pub/Sub channel consumed by the
notification dispatcher (email/SMS). publish_events() is what services call
after commit: a failed publish is logged and swallowed, never raised into a
request that already committed.
"""

import json
import logging
from collections.abc import Iterable

from config.settings import settings
from src.fm_common.redis_client import get_redis
from src.fm_order.domain.events import DomainEvent, EventPublisherProtocol

logger = logging.getLogger(__name__)


class RedisEventPublisher:
    def __init__(self, channel: str | None = None) -> None:
        self._channel = channel or settings.EVENTS_CHANNEL

    async def publish(self, event: DomainEvent) -> None:
        redis = await get_redis()
        await redis.publish(self._channel, json.dumps(event.to_payload(), default=str))


class LoggingEventPublisher:
    """Used when no Redis is configured: writes events to the log only."""

    async def publish(self, event: DomainEvent) -> None:
        logger.info("Event %s: %s", event.event_type, event.to_payload())


def default_publisher() -> EventPublisherProtocol:
    """Redis Pub/Sub when REDIS_URL is set, otherwise the log."""
    if settings.REDIS_URL:
        return RedisEventPublisher()
    logger.warning("REDIS_URL is empty, domain events will only be logged")
    return LoggingEventPublisher()


async def publish_events(
    publisher: EventPublisherProtocol, events: Iterable[DomainEvent]
) -> None:
    for event in events:
        try:
            await publisher.publish(event)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Failed to publish %s for order %d", event.event_type, event.order_id
            )
