"""
Pytest configuration and shared fixtures.

Provides a scripted completion client, a small SQLite database
to ask questions about, an in-memory chat-history store, and an
API test client wired to all three.
"""

import logging
from typing import List, Optional, Union

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sql_analyst.database import Base, get_db
from sql_analyst.main import app
from sql_analyst.routes.chat import get_session_factory
from sql_analyst.services.completion import CompletionResult
from sql_analyst.services.session import (
    AnalystContext,
    get_analyst_context,
)

ORDER_COUNT = 17


# ============================================================================
# Completion client
# ============================================================================


class ScriptedCompletionClient:
    """
    Completion client that replays canned responses in order.

    Each queued item is either raw model text or a ready-made
    ``CompletionResult`` (e.g. an error).  Prompts are recorded
    so tests can assert on what each agent was sent.
    """

    def __init__(self):
        self.responses: List[Union[str, CompletionResult]] = []
        self.prompts: List[str] = []

    def set_responses(self, *responses: Union[str, CompletionResult]):
        self.responses = list(responses)

    def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
    ) -> CompletionResult:
        self.prompts.append(prompt)
        if not self.responses:
            return CompletionResult(error="no scripted response")
        response = self.responses.pop(0)
        if isinstance(response, CompletionResult):
            return response
        return CompletionResult(text=response)


@pytest.fixture
def completion_client():
    """Scripted completion client with an empty queue."""
    return ScriptedCompletionClient()


# ============================================================================
# Uploaded database
# ============================================================================


def _build_sample_db(path: str) -> None:
    """Create an orders/customers database with 17 orders."""
    engine = create_engine(f"sqlite:///{path}")
    try:
        with engine.begin() as conn:
            conn.execute(text(
                "CREATE TABLE customers ("
                "id INTEGER PRIMARY KEY, name TEXT, region TEXT)"
            ))
            conn.execute(text(
                "CREATE TABLE orders ("
                "id INTEGER PRIMARY KEY, "
                "customer_id INTEGER REFERENCES customers(id), "
                "amount REAL, created_at TEXT)"
            ))
            conn.execute(
                text(
                    "INSERT INTO customers (id, name, region) "
                    "VALUES (:id, :name, :region)"
                ),
                [
                    {"id": 1, "name": "Acme", "region": "North"},
                    {"id": 2, "name": "Globex", "region": "South"},
                ],
            )
            conn.execute(
                text(
                    "INSERT INTO orders (customer_id, amount, created_at) "
                    "VALUES (:customer_id, :amount, :created_at)"
                ),
                [
                    {
                        "customer_id": 1 + i % 2,
                        "amount": 10.0 * (i + 1),
                        "created_at": f"2026-09-{i + 1:02d}",
                    }
                    for i in range(ORDER_COUNT)
                ],
            )
    finally:
        engine.dispose()


@pytest.fixture
def sample_db_path(tmp_path):
    """Path of a freshly built sample SQLite database."""
    path = tmp_path / "shop.db"
    _build_sample_db(str(path))
    return str(path)


@pytest.fixture
def analyst_context(completion_client, sample_db_path):
    """Analyst context with the sample database active."""
    ctx = AnalystContext(client=completion_client)
    ctx.replace_database(sample_db_path)
    return ctx


# ============================================================================
# Chat-history store and API client
# ============================================================================


@pytest.fixture
def session_factory():
    """Session factory bound to a fresh in-memory store."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(session_factory):
    """SQLAlchemy session on the in-memory store."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def api_context(completion_client):
    """Analyst context with no database uploaded yet."""
    return AnalystContext(client=completion_client)


@pytest.fixture
def client(session_factory, api_context, tmp_path, monkeypatch):
    """API test client with stores and LLM replaced."""
    from sql_analyst.config import settings

    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_analyst_context] = lambda: api_context
    app.dependency_overrides[get_session_factory] = (
        lambda: session_factory
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """Capture debug logs for every test."""
    caplog.set_level(logging.DEBUG)
    yield
