"""
Infrastructure layer - storage and external system integrations.
Keeps business logic clean from implementation details.
"""

from .memory_store import MemoryProgrammingStore
from .redis_client import close_redis, get_redis
from .sql_store import SqlProgrammingStore

__all__ = ['MemoryProgrammingStore', 'SqlProgrammingStore', 'get_redis', 'close_redis']
