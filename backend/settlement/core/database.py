"""
Database access for the settlement engine

This module centralizes engine/session creation and the transactional
boundary every service uses:
- SQLAlchemy ORM (models in settlement.models)
- session_scope() - one transaction per operation, rollback on any error
- check_connection() - connectivity probe with retry (health checks, jobs)

Author: TM3
Updated: 2026-03-02
"""
import logging
import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import settings
from .errors import classify_db_error

logger = logging.getLogger(__name__)

# Base para modelos
Base = declarative_base()

SessionFactory = Callable[[], Session]

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


# ============================================================================
# Engine / Session Factory
# ============================================================================

def get_engine() -> Engine:
    """Create the process-wide engine on first use"""
    global _engine
    if _engine is None:
        options = {"pool_pre_ping": True}
        if not settings.DATABASE_URL.startswith("sqlite"):
            options.update(pool_size=settings.DB_POOL_SIZE, max_overflow=settings.DB_MAX_OVERFLOW)
        _engine = create_engine(settings.DATABASE_URL, **options)
    return _engine


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine (tests bind their own)"""
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def get_session_factory() -> sessionmaker:
    """Default session factory for services constructed without one"""
    global _session_factory
    if _session_factory is None:
        _session_factory = make_session_factory(get_engine())
    return _session_factory


def init_db(engine: Optional[Engine] = None) -> None:
    """Create settlement tables if they do not exist"""
    # Import models so they register on Base.metadata
    from settlement import models  # noqa: F401

    Base.metadata.create_all(engine or get_engine())


# ============================================================================
# Transactional boundary
# ============================================================================

@contextmanager
def session_scope(session_factory: Optional[SessionFactory] = None) -> Iterator[Session]:
    """
    Run a block inside a single database transaction

    Commits when the block finishes, rolls back on any exception.
    Database exceptions are re-raised as PersistenceError with a structured
    kind; domain errors propagate unchanged.

    Usage:
        with session_scope(factory) as session:
            EarningsRepository(session).create(...)
    """
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        error = classify_db_error(e)
        logger.error(f"Transaction rolled back ({error.kind.value}): {e}")
        raise error from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ============================================================================
# Connectivity probe with retry
# ============================================================================

def check_connection(engine: Optional[Engine] = None, max_retries: int = 3, retry_delay: float = 1.0) -> float:
    """
    Verify the database answers, retrying transient connection failures

    Args:
        engine: Engine to probe (default: process engine)
        max_retries: Maximum number of attempts (default: 3)
        retry_delay: Initial delay between attempts in seconds (default: 1.0)

    Returns:
        Latency of the successful probe in milliseconds

    Raises:
        OperationalError: If all retry attempts fail
    """
    engine = engine or get_engine()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database probe attempt {attempt}/{max_retries}")
            start = time.time()
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return round((time.time() - start) * 1000, 2)

        except OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")

    raise last_error
