from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from assessment_import.core.config import settings


def enable_sqlite_transactions(engine: Engine) -> None:
    """Let pysqlite honour SAVEPOINT and ON DELETE CASCADE.

    pysqlite defers BEGIN on its own and ships with foreign keys disabled;
    both break the all-or-nothing import guarantees, so the driver's
    transaction handling is taken over here.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, _connection_record):  # pragma: no cover - driver wiring
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection):  # pragma: no cover - driver wiring
        connection.exec_driver_sql("BEGIN")


def build_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(database_url, pool_pre_ping=True, future=True)

    options: dict = {"connect_args": {"check_same_thread": False}, "future": True}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    engine = create_engine(database_url, **options)
    enable_sqlite_transactions(engine)
    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


__all__ = ["SessionLocal", "build_engine", "enable_sqlite_transactions", "engine"]
