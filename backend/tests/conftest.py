"""
Shared fixtures: in-memory SQLite, a TestClient wired to it, and agents.
"""
import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from mission_control.database import Base, get_db
from mission_control.main import app
from mission_control.models.agent import Agent, AgentLevel
from mission_control.models.task import Task

# One shared in-memory database per test run
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """TestClient whose requests use the test database."""
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_agent(db, name, session_key, level=AgentLevel.SPECIALIST, squad="oceans-11", role="Writer"):
    agent = Agent(
        name=name,
        role=role,
        squad=squad,
        session_key=session_key,
        level=level.value,
    )
    db.add(agent)
    db.commit()
    db.refresh(agent)
    return agent


@pytest.fixture
def agent(db):
    """A specialist in oceans-11."""
    return make_agent(db, "Linus", "session-linus")


@pytest.fixture
def intern(db):
    return make_agent(db, "Yen", "session-yen", level=AgentLevel.INTERN, role="Researcher")


@pytest.fixture
def lead(db):
    return make_agent(db, "Danny", "session-danny", level=AgentLevel.LEAD, role="Squad Lead")


@pytest.fixture
def task(db, agent):
    t = Task(title="Q3 launch plan", squad="oceans-11", created_by=agent.name)
    db.add(t)
    db.commit()
    db.refresh(t)
    return t


@pytest.fixture
def auth():
    """Build request headers identifying an agent."""
    def _headers(agent):
        return {"X-Agent-Session": agent.session_key}
    return _headers
