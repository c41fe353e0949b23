from contextlib import contextmanager
from typing import Generator, Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import SQLModel, create_engine, Session

from core.config import settings
from core.errors import PersistenceError


def build_engine(url: str, isolation_level: Optional[str] = None, **kwargs) -> Engine:
    if isolation_level:
        kwargs["isolation_level"] = isolation_level

    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine = create_engine(url, echo=False, connect_args=connect_args, **kwargs)

    if url.startswith("sqlite"):
        _enable_sqlite_savepoints(engine)

    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite opens transactions lazily and breaks SAVEPOINT;
    # hand transaction control back to SQLAlchemy.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = build_engine(settings.DATABASE_URL, settings.DATABASE_ISOLATION_LEVEL)


def create_db_and_tables() -> None:
    # Registers every table on SQLModel.metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for jobs and fire-and-forget writers outside a request.
    Commits on success; database failures surface as PersistenceError.
    """
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise PersistenceError(str(e)) from e


def commit_or_raise(session: Session, operation: str = "Database operation") -> None:
    """Commit the request's unit of work; failures roll back and surface as PersistenceError."""
    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        raise PersistenceError(f"{operation}: {e}") from e
