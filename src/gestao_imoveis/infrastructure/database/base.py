"""Database base configuration and session management."""

from contextlib import contextmanager
from typing import Callable, Generator, TypeVar

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from gestao_imoveis.core.config import get_settings
from gestao_imoveis.core.exceptions import ConflictError
from gestao_imoveis.core.logging import get_logger

logger = get_logger(__name__)
T = TypeVar("T")


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, adding connection resilience settings for PostgreSQL."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
        )

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,  # Check connection health before using
        pool_recycle=300,  # Recycle connections after 5 minutes
        pool_timeout=30,
        pool_size=5,
        max_overflow=10,
        connect_args={
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
            "connect_timeout": 10,
            "options": "-c statement_timeout=60000 -c lock_timeout=30000",
        },
    )


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get database session with automatic cleanup."""
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """Run a unit of work on an existing session: commit on success, rollback on any error.

    Multi-step billing operations (create with generation, renew, close,
    bulk update) go through here so a failure at any step leaves no partial
    writes behind.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def init_db(bind: Engine = None) -> None:
    """Initialize database tables."""
    # Import models so they register on Base.metadata
    from gestao_imoveis.infrastructure.database import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def run_with_conflict_retry(
    session: Session,
    operation: Callable[[], T],
    max_retries: int = 3,
    operation_name: str = "database operation",
) -> T:
    """
    Run a transactional operation, re-running it when a unique constraint races.

    The operation must compute everything it inserts from fresh reads, so a
    retry after rollback sees the rows committed by the competing request.

    Args:
        session: SQLAlchemy session
        operation: Callable that performs the whole unit of work, including commit
        max_retries: Extra attempts after the first IntegrityError
        operation_name: Name for logging purposes

    Returns:
        Result of the operation

    Raises:
        ConflictError: If every attempt hit a unique constraint violation
    """
    for attempt in range(max_retries + 1):
        try:
            return operation()
        except IntegrityError as e:
            session.rollback()
            if attempt < max_retries:
                logger.warning(
                    "Unique constraint conflict, retrying",
                    operation=operation_name,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                )
                continue
            logger.error(
                "Unique constraint conflict persisted after retries",
                operation=operation_name,
                error=str(e.orig),
            )
            raise ConflictError(
                "Conflito ao gravar parcelas: numeração já utilizada por outra operação."
            ) from e

    raise ConflictError("Conflito ao gravar parcelas.")
