"""
In-process publishers: no broker involved.
"""

from stagebook.services.interfaces.events import DomainEvent, EventPublisher


class NullPublisher(EventPublisher):
    """
    Drops every event.

    Use when:
    - no notification collaborator is deployed
    - running scripts or migrations
    """

    async def publish(self, event: DomainEvent) -> None:
        """No-op."""
        pass


class RecordingPublisher(EventPublisher):
    """Keeps published events in order, for tests and dry runs."""

    def __init__(self):
        self.events: list[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.events.append(event)

    def names(self) -> list[str]:
        return [event.name for event in self.events]

    def clear(self) -> None:
        self.events.clear()
