"""Detect optional columns of the todo store once per engine."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import Lock
from weakref import WeakKeyDictionary

from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreCapabilities:
    supports_position: bool


_cache: "WeakKeyDictionary[Engine, StoreCapabilities]" = WeakKeyDictionary()
_cache_lock = Lock()


def probe_capabilities(engine: Engine) -> StoreCapabilities:
    """Inspect the ``todos`` table and report which optional columns exist."""
    try:
        columns = {column["name"] for column in inspect(engine).get_columns("todos")}
    except SQLAlchemyError as exc:
        logger.warning("Unable to inspect todos table, optional columns disabled: %s", exc)
        return StoreCapabilities(supports_position=False)

    capabilities = StoreCapabilities(supports_position="position" in columns)
    if not capabilities.supports_position:
        logger.warning("todos.position is missing; manual ordering will not be persisted.")
    return capabilities


def get_store_capabilities(db: Session) -> StoreCapabilities:
    """Return the cached capabilities for the engine behind ``db``."""
    engine = db.get_bind()
    with _cache_lock:
        cached = _cache.get(engine)
        if cached is not None:
            return cached
        capabilities = probe_capabilities(engine)
        _cache[engine] = capabilities
        return capabilities


def reset_capabilities_cache() -> None:
    with _cache_lock:
        _cache.clear()
