"""
Publisher factory.
Configures where engine events are sent.
"""

from typing import Optional

from stagebook.core.config import get_settings
from stagebook.services.interfaces.events import EventPublisher
from stagebook.services.interfaces.local_publishers import NullPublisher
from stagebook.services.notification_service import RedisEventPublisher


def build_event_publisher() -> EventPublisher:
    """
    Build the configured publisher.

    - null: events are dropped (default, no notification collaborator)
    - redis: events are published on EVENTS_CHANNEL

    Selected via the EVENT_PUBLISHER env var.
    """
    settings = get_settings()
    if settings.EVENT_PUBLISHER.lower() == 'redis':
        return RedisEventPublisher(settings.EVENTS_CHANNEL)
    return NullPublisher()


# Singleton instance
_publisher: Optional[EventPublisher] = None


def get_event_publisher() -> EventPublisher:
    """Get event publisher singleton."""
    global _publisher
    if _publisher is None:
        _publisher = build_event_publisher()
    return _publisher
