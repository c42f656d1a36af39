# salon/db.py

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from salon import models  # noqa: F401  registers tables on SQLModel.metadata


def make_engine(database_url: str, echo: bool = False, **kwargs) -> Engine:
    connect_args = kwargs.pop("connect_args", {})
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

    connect_args.setdefault("check_same_thread", False)  # required for SQLite + FastAPI
    engine = create_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

    # pysqlite defers BEGIN until the first write, so "read bookings, decide,
    # write" would run unlocked. Take the write lock when the transaction starts.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def create_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)


# Dependency: one session per request
def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
