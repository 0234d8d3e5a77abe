import random
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from templebook.config import settings
from templebook.errors import ConcurrencyConflictError, StoreUnavailableError
from templebook.logging_config import get_logger

logger = get_logger()

T = TypeVar("T")

# serialization_failure, deadlock_detected, lock_not_available
RETRYABLE_SQLSTATES = {"40001", "40P01", "55P03"}

Base = declarative_base()


def create_db_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine with the locking policy admission control relies on.

    SQLite has no SELECT ... FOR UPDATE, so every SQLite transaction is
    opened with BEGIN IMMEDIATE and holds the database write lock until it
    commits or rolls back.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True, **kwargs)

    connect_args = kwargs.pop("connect_args", {})
    connect_args.setdefault("check_same_thread", False)
    connect_args.setdefault("timeout", 30)
    engine = create_engine(database_url, connect_args=connect_args, **kwargs)

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


engine = create_db_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def is_retryable_error(exc: Exception) -> bool:
    """True for aborts caused by concurrent writers rather than a broken store."""
    if isinstance(exc, IntegrityError):
        # Booking number collision; a fresh number is drawn on the next attempt
        return "booking_number" in str(exc.orig)

    if isinstance(exc, OperationalError):
        orig = getattr(exc, "orig", None)
        pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if pgcode in RETRYABLE_SQLSTATES:
            return True
        return "database is locked" in str(exc).lower()

    return False


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    operation: str = "transaction",
    max_attempts: Optional[int] = None,
) -> T:
    """Run ``work`` and commit, retrying transient conflicts a bounded number of times.

    Application errors raised by ``work`` roll the transaction back and
    propagate unchanged. Concurrency aborts are retried; when attempts run
    out they surface as ConcurrencyConflictError. Any other operational
    failure means the store is unreachable and is raised immediately as
    StoreUnavailableError.
    """
    attempts = max_attempts or settings.TRANSACTION_MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except (OperationalError, IntegrityError) as exc:
            db.rollback()

            if not is_retryable_error(exc):
                if isinstance(exc, OperationalError):
                    logger.error(f"{operation} failed, store unavailable: {exc.__class__.__name__}")
                    raise StoreUnavailableError() from exc
                raise

            logger.warning(f"{operation} conflict on attempt {attempt}/{attempts}")
            if attempt == attempts:
                raise ConcurrencyConflictError() from exc

            time.sleep(random.uniform(0.01, 0.05) * attempt)
        except Exception:
            db.rollback()
            raise

    # attempts < 1
    raise ConcurrencyConflictError()
