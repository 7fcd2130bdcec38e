import os
import sys
from collections.abc import Iterator
from pathlib import Path

# Settings are read at import time; point the app at SQLite unless told otherwise.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

import assessment_import.models  # noqa: E402,F401
from assessment_import.db.base import Base  # noqa: E402
from assessment_import.db.session import build_engine  # noqa: E402
from assessment_import.deps import admin as admin_deps  # noqa: E402
from assessment_import.main import app  # noqa: E402
from assessment_import.models.admin_user import AdminUser  # noqa: E402
from tests.factories import AdminUserFactory, set_factory_session  # noqa: E402
from tests.utils.auth import auth_header_for  # noqa: E402


def _get_database_url() -> str:
    return os.environ.get("TEST_DATABASE_URL") or "sqlite+pysqlite:///:memory:"


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = build_engine(_get_database_url())
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def db_session(engine: Engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    session = TestingSessionLocal()
    set_factory_session(session)
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        set_factory_session(None)


@pytest.fixture
def client(db_session: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[admin_deps.get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(admin_deps.get_db, None)


@pytest.fixture
def admin(db_session: Session) -> AdminUser:
    return AdminUserFactory()


@pytest.fixture
def auth_header(admin: AdminUser) -> dict[str, str]:
    return auth_header_for(admin.id)
