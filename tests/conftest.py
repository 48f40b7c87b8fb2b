"""
Pytest configuration and shared fixtures.

Test environment variables are set here before any chatboard import so the
settings, engine and logging pick them up.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_chatboard.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

# Clear settings cache before any app imports to ensure test env vars are used
from chatboard.config import get_settings
get_settings.cache_clear()

from chatboard import models  # noqa: F401,E402
from chatboard.main import create_app  # noqa: E402
from chatboard.notifier import Notifier  # noqa: E402
from chatboard.storage import Base, SessionLocal, engine  # noqa: E402


class RecordingNotifier(Notifier):
    """Notifier that remembers every emitted event before broadcasting it."""

    def __init__(self) -> None:
        super().__init__()
        self.events = []

    def emit(self, event, payload) -> None:
        self.events.append((event, payload))
        super().emit(event, payload)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(scope="function")
def client(notifier):
    """Create test client with fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    with TestClient(create_app(notifier=notifier)) as test_client:
        yield test_client

    # Cleanup - drop all tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db():
    """Database session against freshly created tables."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
