from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from classtime.core.config import get_settings


def _enable_sqlite_write_locking(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write, so two transactions can both
    # read an empty slot. Taking the write lock up front serializes them.
    @event.listens_for(engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(connection) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str, *, echo: bool = False) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo, pool_pre_ping=True)

    engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
    if url.database and url.database != ":memory:":
        _enable_sqlite_write_locking(engine)
    return engine


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
