from contextlib import contextmanager
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


engine = None
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, future=True)


def configure_engine(database_url: str):
    """Bind the session factory to ``database_url`` and return the engine."""
    global engine
    kwargs = {"future": True}
    file_sqlite = False
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
        else:
            # sqlite file parent must exist or connect fails with 'unable to open database file'
            db_path = database_url.split("sqlite:///")[-1]
            Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
            kwargs["connect_args"]["timeout"] = 30
            file_sqlite = True
    if engine is not None:
        engine.dispose()
    engine = create_engine(database_url, **kwargs)
    if file_sqlite:
        _serialize_sqlite_writers(engine)
    SessionLocal.configure(bind=engine)
    return engine


def _serialize_sqlite_writers(sqlite_engine) -> None:
    """Take the write lock at BEGIN so concurrent transactions queue on the busy timeout.

    A deferred transaction that reads and then writes can be refused with
    'database is locked' at once instead of waiting its turn.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_all() -> None:
    from ..models import Base

    Base.metadata.create_all(engine)


def drop_all() -> None:
    from ..models import Base

    Base.metadata.drop_all(engine)


@contextmanager
def get_session():
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
