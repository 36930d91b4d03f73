"""
Database configuration:
- pool_pre_ping=True for server databases
- SSL enforced for Supabase
- SQLite usable for local runs and tests
- One session per request via get_db()
"""
import logging
import time
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from sweetshop.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()

_IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def create_db_engine(database_url: str) -> Engine:
    """Build an engine with options suited to the backend behind the URL."""
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url in _IN_MEMORY_URLS:
            # Every session must see the same in-memory database
            options["poolclass"] = StaticPool
        return create_engine(database_url, **options)

    # Add SSL mode for Supabase if not present
    if "supabase" in database_url and "sslmode" not in database_url:
        database_url += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=False,
    )


engine = create_db_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)


def get_db() -> Generator[Session, None, None]:
    """Yield a session scoped to one request; roll back whatever was left open."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Engine = None) -> None:
    """Create all tables that do not exist yet."""
    from sweetshop import models  # noqa: F401  (registers tables on Base)

    Base.metadata.create_all(bind=bind or engine)


def test_connection(bind: Engine = None, attempts: int = 3) -> tuple[bool, str]:
    """Test database connection, retrying OperationalError."""
    bind = bind or engine
    for attempt in range(attempts):
        try:
            with bind.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True, "Database connection successful"
        except OperationalError as e:
            if attempt == attempts - 1:
                return False, f"Database connection failed: {e}"
            logger.warning(f"Database connection attempt {attempt + 1} failed, retrying...")
            time.sleep(1)
    return False, "Database connection test failed"
