"""
Service interfaces for dependency inversion.
Storage and notification backends are swapped without touching the engine.
"""

from .events import DomainEvent, EventPublisher
from .local_publishers import NullPublisher, RecordingPublisher
from .store import ProgrammingStore

__all__ = ['DomainEvent', 'EventPublisher', 'NullPublisher', 'RecordingPublisher', 'ProgrammingStore']
