"""
Pytest configuration and fixtures for famcare tests.

Every test gets its own in-memory sqlite database, so the suite needs no
external services.
"""

import os

# Keep application startup away from any real database.
os.environ.setdefault("SKIP_DB_INIT", "1")
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient

from famcare.api.dependencies import get_repository, import_task_store
from famcare.core.security import create_access_token
from famcare.db.repository import CaseRepository
from famcare.db.session import build_engine
from famcare.db.tables import create_case_tables
from famcare.main import app
from tests.utils.sheets import ACCOUNT_ID, OTHER_ACCOUNT_ID


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    create_case_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return CaseRepository(engine)


@pytest.fixture
def client(repository):
    app.dependency_overrides[get_repository] = lambda: repository
    import_task_store.clear()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token(ACCOUNT_ID)}"}


@pytest.fixture
def other_auth_headers():
    return {"Authorization": f"Bearer {create_access_token(OTHER_ACCOUNT_ID)}"}
