"""
Test configuration and fixtures.

Every test gets its own SQLite file database so board fetches running in
worker threads each get a real connection.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from liftboard.auth import CurrentUser, get_current_user
from liftboard.database import Base, build_engine, get_db, get_session_factory
from liftboard.main import app


@pytest.fixture
def engine(tmp_path):
    test_engine = build_engine(f"sqlite:///{tmp_path / 'liftboard_test.db'}")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser(id="user-1", role="admin", worker_id=None)


def _override_store(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory


@pytest.fixture
def anon_client(session_factory) -> Generator[TestClient, None, None]:
    """Client with the real token check"""
    _override_store(session_factory)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client(session_factory, current_user) -> Generator[TestClient, None, None]:
    """Client authenticated as ``current_user``"""
    _override_store(session_factory)
    app.dependency_overrides[get_current_user] = lambda: current_user
    yield TestClient(app)
    app.dependency_overrides.clear()
