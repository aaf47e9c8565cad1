"""
Pytest configuration and shared fixtures.
"""

import pytest
from typing import Any, Dict, List
from unittest.mock import Mock

from jobboard.logger import get_logger

# Create the shared logger before any jobboard module grabs it, so tests
# neither print nor write log files.
get_logger(enable_console=False, enable_file=False)

from jobboard.cache import InMemoryCache  # noqa: E402
from jobboard.config import Settings  # noqa: E402
from jobboard.database import dispose_engines  # noqa: E402


def make_job(activity_id, project_id=None, title=None, project_name=None) -> Dict[str, Any]:
    """Build a serialized job keyed on its activity id."""
    project_id = project_id if project_id is not None else f"project_{activity_id}"
    return {
        "id": activity_id,
        "activity": {"id": activity_id, "title": title or f"Activity {activity_id}"},
        "project": {"id": project_id, "name": project_name or f"Project {project_id}"},
    }


@pytest.fixture
def job():
    """Factory for serialized jobs: job(activity_id, project_id=None, ...)."""
    return make_job


@pytest.fixture
def access_token() -> str:
    return "octopod-access-token"


@pytest.fixture
def raw_projects() -> List[Dict[str, Any]]:
    """Projects as returned by Octopod."""
    return [
        {
            "id": 101,
            "name": "  Refonte   SI ",
            "status": "proposal_in_progress",
            "customer": {"id": 9, "name": "Acme"},
            "business_contact": {"nickname": "JDO"},
            "mission_director": {"first_name": "Jane", "last_name": "Roe"},
            "start_date": "2026-11-01",
            "duration": 6,
            "location": "Paris",
            "nature": "regie",
        },
        {
            "id": 102,
            "name": "Data platform",
            "status": "mission_accepted",
            "customer": "Beta",
            "business_contact": None,
            "mission_director": None,
        },
    ]


@pytest.fixture
def raw_activities() -> List[Dict[str, Any]]:
    """Activities as returned by the client, already filtered on staffing need."""
    return [
        {"id": 1, "title": "Tech Lead Java", "project": {"id": 101}, "staffing_needed": True,
         "staffing_needed_from": "2026-11-01"},
        {"id": 2, "title": "Data engineer", "project": {"id": 102}, "staffing_needed": True},
        {"id": 3, "title": "Scrum master", "project_id": 101, "staffing_needed": True},
    ]


@pytest.fixture
def serialized_jobs() -> List[Dict[str, Any]]:
    return [
        make_job("still_available_job_activity", "still_available_job_project"),
        make_job("new_available_job_activity_1", "new_available_job_project_1"),
        make_job("new_available_job_activity_2", "new_available_job_project_2"),
    ]


@pytest.fixture
def octopod_client(access_token) -> Mock:
    """Octopod client double returning canned projects and activities."""
    client = Mock()
    client.get_access_token.return_value = access_token
    client.fetch_projects_to_be_staffed.return_value = ["project_1", "project_2", "project_3"]
    client.fetch_activities_to_be_staffed.return_value = ["activity_1", "activity_2", "activity_3"]
    return client


@pytest.fixture
def serializer(serialized_jobs) -> Mock:
    s = Mock()
    s.serialize.return_value = serialized_jobs
    return s


@pytest.fixture
def cache() -> Mock:
    """In-memory cache wrapped in a Mock so calls can be asserted."""
    return Mock(wraps=InMemoryCache())


@pytest.fixture
def subscriptions() -> Mock:
    store = Mock()
    store.all.return_value = [Mock(email="recipient@octo.com")]
    return store


@pytest.fixture
def mailer() -> Mock:
    return Mock()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        octopod_client_id="client-id",
        octopod_client_secret="client-secret",
        db_path=tmp_path / "jobboard.db",
        cache_file=tmp_path / "cache.json",
        smtp_host="smtp.example.com",
        smtp_user="bot@example.com",
        smtp_password="secret",
        mail_from="bot@example.com",
    )


@pytest.fixture(autouse=True)
def _dispose_engines():
    """Release SQLite connections opened during the test."""
    yield
    dispose_engines()
