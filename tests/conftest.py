"""Pytest configuration and fixtures."""

import asyncio
import tempfile
from pathlib import Path

import pytest

from wellness_pass.db import ClientRepository, LocalCache, get_cache_path, get_db_path, init_db
from wellness_pass.models.client import ClientRecord
from wellness_pass.services.connectivity import Connectivity
from wellness_pass.services.roster import CoachSession, Role
from wellness_pass.services.wellness import DEFAULT_COACH_ID, AppContext, WellnessService


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def cache(temp_data_dir):
    """A local cache in the temporary data directory."""
    return LocalCache(get_cache_path(temp_data_dir))


@pytest.fixture
def repository(temp_data_dir):
    """A client repository over an initialized store."""
    db_path = get_db_path(temp_data_dir)
    asyncio.run(init_db(db_path))
    return ClientRepository(db_path=db_path)


@pytest.fixture
def coach_session():
    return CoachSession(role=Role.COACH, coach_id=DEFAULT_COACH_ID, coach_name="Coach Test")


@pytest.fixture
def admin_session():
    return CoachSession(role=Role.ADMIN, coach_id="admin-1", coach_name="Admin")


@pytest.fixture
def make_service(cache, repository, coach_session):
    """Build services sharing one cache and store."""

    def factory(online: bool = True, session: CoachSession | None = None) -> WellnessService:
        context = AppContext(
            cache=cache,
            repository=repository,
            connectivity=Connectivity(online),
            session=session or coach_session,
        )
        return WellnessService(context)

    return factory


@pytest.fixture
def sample_client():
    """A saved client assigned to the default coach."""
    return ClientRecord.from_dict(
        {
            "clientName": "Ana Pop",
            "phone": "0722 000 111",
            "email": "ana@example.com",
            "coach": "Coach Test",
            "date": "07-March-2026",
            "assignedCoachId": DEFAULT_COACH_ID,
        },
        id="client-1",
    )
