"""FastAPI dependencies for database access."""
from __future__ import annotations

from typing import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from smart_todo.db.capabilities import StoreCapabilities, get_store_capabilities
from smart_todo.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Yield a session that is always closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_capabilities(db: Session = Depends(get_db)) -> StoreCapabilities:
    """Optional-column flags for the engine behind the request session."""
    return get_store_capabilities(db)
