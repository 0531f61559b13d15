"""
Request dependencies. Tests swap these through app.dependency_overrides.
"""

from functools import lru_cache

from stagebook.db.session import get_session_factory
from stagebook.infrastructure.sql_store import SqlProgrammingStore
from stagebook.services.interfaces import EventPublisher, ProgrammingStore
from stagebook.services.strategy_factory import get_event_publisher


@lru_cache()
def _sql_store() -> SqlProgrammingStore:
    return SqlProgrammingStore(get_session_factory())


def get_store() -> ProgrammingStore:
    return _sql_store()


def get_events() -> EventPublisher:
    return get_event_publisher()
