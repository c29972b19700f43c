"""
Pytest fixtures for the work request engine test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- A DeterministicClock
- An in-memory SQLite session with the schema created
- In-memory collaborators (repository, identity, trust, notifier)
- Wired WorkRequestService / DisputeService instances
"""

import json
import logging
from io import StringIO

import pytest

from tests.factories import T0
from tests.fakes import FakeIdentity, FakeTrust, InMemoryRepository, RecordingNotifier
from workrequest_config import get_active_config
from workrequest_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from workrequest_kernel.domain.clock import DeterministicClock
from workrequest_kernel.domain.roles import Role
from workrequest_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from workrequest_kernel.services.work_request_store import WorkRequestStore
from workrequest_services import DisputeService, RoutingService, WorkRequestService


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture workrequest_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, service):
            service.create_request(...)
            logs = captured_logs()
            assert any(r["message"] == "work_request_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("workrequest_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def clock():
    return DeterministicClock(T0)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def session():
    """Session on a fresh in-memory SQLite database.  Rolled back afterwards."""
    init_engine_from_url("sqlite://")
    create_tables()
    db_session = get_session()
    yield db_session
    db_session.rollback()
    db_session.close()
    drop_tables()
    reset_engine()


@pytest.fixture
def store(session):
    return WorkRequestStore(session)


# =============================================================================
# Collaborators and services
# =============================================================================


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def identity():
    """A small cast of users across the participating enterprises."""
    ident = FakeIdentity()
    ident.add("coord-a", Role.CAMPUS_COORDINATOR, "Coordinator A", "org-north")
    ident.add("coord-b", Role.CAMPUS_COORDINATOR, "Coordinator B", "org-south")
    ident.add("student-1", Role.STUDENT, "Student One", "org-north")
    ident.add("student-2", Role.STUDENT, "Student Two", "org-south")
    ident.add("student-9", Role.STUDENT, "Sam Student", "org-south")
    ident.add("station-1", Role.STATION_MANAGER, "Station Manager", "org-mbta")
    ident.add("mbta-1", Role.MBTA_STATION_MANAGER, "MBTA Manager", "org-mbta")
    ident.add("airport-1", Role.AIRPORT_LOST_FOUND_SPECIALIST, "Airport Specialist", "org-logan")
    ident.add("officer-1", Role.POLICE_EVIDENCE_CUSTODIAN, "Officer Kim", "org-bpd")
    ident.add("admin-1", Role.SYSTEM_ADMIN, "Admin", None)
    return ident


@pytest.fixture
def trust():
    return FakeTrust()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine_config():
    return get_active_config()


@pytest.fixture
def routing(identity):
    return RoutingService(identity)


@pytest.fixture
def service(repository, identity, trust, notifier, routing, clock, engine_config):
    return WorkRequestService(
        repository,
        identity,
        trust=trust,
        notifier=notifier,
        routing=routing,
        clock=clock,
        config=engine_config,
    )


@pytest.fixture
def dispute_service(service):
    return DisputeService(service)
