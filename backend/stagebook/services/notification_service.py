"""
Redis pub/sub publisher for engine facts.

Every event is serialised as one JSON object on EVENTS_CHANNEL. The
notification collaborator subscribes and decides wording and delivery.

Publishing fails open: a broker outage is logged and counted, never
surfaced to the caller, since the state change it describes is already
committed.
"""

import json

from redis.exceptions import RedisError

from stagebook.core.config import get_settings
from stagebook.core.logging import get_logger
from stagebook.core.metrics import event_publish_errors
from stagebook.infrastructure.redis_client import get_redis
from stagebook.services.interfaces.events import DomainEvent, EventPublisher

logger = get_logger(__name__)


class RedisEventPublisher(EventPublisher):

    def __init__(self, channel: str | None = None):
        self.channel = channel or get_settings().EVENTS_CHANNEL

    async def publish(self, event: DomainEvent) -> None:
        client = await get_redis()
        if client is None:
            event_publish_errors.inc()
            logger.warning("event_dropped", event_name=event.name, reason="redis_unavailable")
            return

        message = json.dumps(event.to_dict(), default=str)
        try:
            receivers = await client.publish(self.channel, message)
        except (RedisError, OSError) as e:
            event_publish_errors.inc()
            logger.warning("event_publish_failed", event_name=event.name, error=str(e))
            return

        logger.debug("event_published", event_name=event.name, channel=self.channel, receivers=receivers)

