"""Database session dependency."""

from typing import Generator

from sqlalchemy.orm import Session

from gestao_imoveis.infrastructure.database.base import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Yield a session per request; services own commit/rollback."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
