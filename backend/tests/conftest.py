"""
Pytest fixtures: in-memory store, recording publisher, HTTP client and
ready-made programs.

The API tests run against MemoryProgrammingStore through dependency
overrides; test_sql_store.py covers the SQLAlchemy store on SQLite.
"""

import copy
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from stagebook.api.deps import get_events, get_store
from stagebook.domain import Program, ProgramConditions, ProgramStatus, ProgramType
from stagebook.infrastructure.memory_store import MemoryProgrammingStore
from stagebook.main import app
from stagebook.services.interfaces import RecordingPublisher

RESIDENCY_CONDITIONS = {
    "currency": "EUR",
    "is_net": True,
    "lodging": {"included": True, "companion_included": False, "details": "Studio au-dessus du bar"},
    "meals": {"included": True},
    "remuneration": {
        "mode": "PER_WEEK",
        "per_week": {
            "standard": {"fee_cents": 15000, "performance_count": 2},
            "high_demand": {"fee_cents": 30000, "performance_count": 4},
        },
    },
    "contacts": {"items": [{"label": "Régie", "value": "Camille"}]},
    "notes": "Arrivée la veille",
}

MULTI_DATES_CONDITIONS = {
    "is_net": True,
    "remuneration": {
        "mode": "PER_DATE",
        "per_date": {
            "artist_choice": True,
            "options": [
                {"label": "Cachet fixe", "amount_cents": 20000},
                {"label": "Recette de la porte"},
            ],
        },
    },
}


@pytest.fixture
def store() -> MemoryProgrammingStore:
    return MemoryProgrammingStore()


@pytest.fixture
def events() -> RecordingPublisher:
    return RecordingPublisher()


@pytest_asyncio.fixture(scope="function")
async def client(store: MemoryProgrammingStore, events: RecordingPublisher) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client wired to the in-memory store and recording publisher."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_events] = lambda: events

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def residency(store: MemoryProgrammingStore) -> Program:
    """Active weekly residency with a per-tier remuneration table."""
    return await store.add_program(
        "Résidence d'hiver",
        ProgramType.WEEKLY_RESIDENCY,
        ProgramStatus.ACTIVE,
        ProgramConditions.from_json(RESIDENCY_CONDITIONS),
    )


@pytest_asyncio.fixture
async def multi_dates(store: MemoryProgrammingStore) -> Program:
    """Active multi-date program where artists pick their remuneration."""
    return await store.add_program(
        "Jeudis acoustiques",
        ProgramType.MULTI_DATES,
        ProgramStatus.ACTIVE,
        ProgramConditions.from_json(MULTI_DATES_CONDITIONS),
    )


@pytest.fixture
def residency_conditions() -> dict:
    return copy.deepcopy(RESIDENCY_CONDITIONS)


@pytest.fixture
def multi_dates_conditions() -> dict:
    return copy.deepcopy(MULTI_DATES_CONDITIONS)
