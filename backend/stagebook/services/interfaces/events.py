"""
Notification port.

The engine emits state changes as plain facts (name + identifiers). Message
wording and delivery belong to the notification collaborator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

APPLICATION_RECEIVED = "application_received"
APPLICATION_WITHDRAWN = "application_withdrawn"
APPLICATION_REJECTED = "application_rejected"
BOOKING_CONFIRMED = "booking_confirmed"
BOOKING_CANCELLED = "booking_cancelled"
SLOT_CANCELLED = "slot_cancelled"
WEEKS_GENERATED = "weeks_generated"


@dataclass(frozen=True)
class DomainEvent:
    name: str
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.name, **self.payload}


class EventPublisher(ABC):
    """
    Interface for notification fan-out.

    Implementations:
    - NullPublisher: drop everything
    - RecordingPublisher: keep events in memory (tests, previews)
    - RedisEventPublisher: publish JSON on a Redis channel

    Publishing happens after the state change is committed and must never
    undo or fail it.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        pass
