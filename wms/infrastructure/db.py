from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from wms.core_settings import get_settings
from wms.domain.models import Base

def build_engine(url: str, **pool_options) -> Engine:
    """Create an engine whose transactions serialize writers on every backend.

    PostgreSQL and MySQL rely on ``SELECT ... FOR UPDATE`` issued by the
    inventory service. SQLite ignores that clause, so its transactions are
    opened with ``BEGIN IMMEDIATE`` instead, which takes the database write
    lock up front.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False, "timeout": 15},
        )

        @event.listens_for(engine, "connect")
        def _configure_sqlite(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            dbapi_connection.execute("PRAGMA foreign_keys=ON")

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    return create_engine(url, echo=False, pool_pre_ping=True, **pool_options)

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

settings = get_settings()
engine = build_engine(
    settings.database_url,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_timeout=settings.DB_POOL_TIMEOUT,
    pool_recycle=settings.DB_POOL_RECYCLE,
)
SessionLocal = make_session_factory(engine)

def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_models(bind: Engine = engine):
    Base.metadata.create_all(bind)
