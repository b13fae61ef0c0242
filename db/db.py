import logging
from contextlib import contextmanager
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from coupon_allocator import config

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine with settings suited to the backend."""
    if database_url.startswith("sqlite"):
        # Worker threads share the engine; wait on the write lock instead of failing
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30}
        )

    engine = create_engine(
        database_url,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True
    )

    if engine.dialect.name == "postgresql":
        @event.listens_for(engine, "connect")
        def set_timezone(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("SET TIME ZONE 'UTC'")
            cursor.close()

    return engine


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope():
    """Provide a transactional scope around a series of operations."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(bind: Engine = None) -> None:
    """Create any missing tables."""
    from db.models import Base

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database schema ensured")
