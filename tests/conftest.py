"""
Shared fixtures for the moderation engine tests
===============================================

Every test gets a fresh in-memory SQLite schema, a staging area rooted in
its own tmp directory and principals for the usual roles.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.config.settings import settings
from core.database import Base, get_db
from core.database.models import Vehicle
from core.events import event_bus
from core.security.principal import Principal, Role, ensure_user
from core.services.storage_service import LocalStagingService, get_staging_service
from main import app


# ------------------------------ DATABASE ------------------------------

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def staging(tmp_path):
    return LocalStagingService(settings.storage, root=tmp_path / "uploads")


# ------------------------------ PRINCIPALS ------------------------------

def make_principal(db, user_id, role=Role.MEMBER):
    principal = Principal(user_id=user_id, role=role)
    ensure_user(db, principal)
    db.commit()
    return principal


@pytest.fixture
def alice(db):
    return make_principal(db, 1)


@pytest.fixture
def bob(db):
    return make_principal(db, 2)


@pytest.fixture
def carol(db):
    return make_principal(db, 3)


@pytest.fixture
def moderator(db):
    return make_principal(db, 10, Role.MODERATOR)


@pytest.fixture
def admin(db):
    return make_principal(db, 99, Role.ADMIN)


def auth(principal):
    """Identity headers the upstream auth layer would forward."""
    return {"X-User-Id": str(principal.user_id), "X-User-Role": principal.role.value}


# ------------------------------ CATALOG ------------------------------

def add_vehicle(db, **fields):
    data = {"make": "Tesla", "model": "Model 3", "year": 2023}
    data.update(fields)
    vehicle = Vehicle(**data)
    db.add(vehicle)
    db.commit()
    db.refresh(vehicle)
    return vehicle


# ------------------------------ EVENTS ------------------------------

@pytest.fixture
def events():
    received = []
    event_bus.subscribe(received.append)
    yield received
    event_bus.unsubscribe(received.append)


# ------------------------------ API CLIENT ------------------------------

@pytest.fixture
def client(session_factory, staging):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_staging_service] = lambda: staging
    yield TestClient(app)
    app.dependency_overrides.clear()
