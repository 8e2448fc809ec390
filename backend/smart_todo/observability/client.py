"""Lazily built Opik client shared by tracing and metrics."""
from __future__ import annotations

import logging
from threading import Lock
from typing import Optional

from smart_todo.core.config import Settings, settings

try:
    from opik import Opik
except ImportError:  # pragma: no cover
    Opik = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)

_client: Optional["Opik"] = None
_client_lock = Lock()
_init_attempted = False


def _build_client(config: Settings) -> Optional["Opik"]:
    if Opik is None:
        logger.debug("opik is not installed; tracing disabled.")
        return None
    if not config.opik_enabled:
        logger.debug("Opik disabled; traces and metrics are no-ops.")
        return None
    if not config.opik_api_key:
        logger.warning("OPIK_ENABLED is true but OPIK_API_KEY is missing; skipping Opik init.")
        return None

    try:
        client = Opik(project_name=config.opik_project, api_key=config.opik_api_key)
    except Exception as exc:  # pragma: no cover - SDK raises its own config errors
        logger.warning("Failed to initialize Opik, tracing will be disabled: %s", exc)
        return None

    logger.info("Opik enabled (project=%s).", config.opik_project)
    return client


def init_opik() -> Optional["Opik"]:
    """Build the client on first call; later calls return the cached result, even when it is None."""
    global _client, _init_attempted

    with _client_lock:
        if not _init_attempted:
            _client = _build_client(settings)
            _init_attempted = True
        return _client


def get_opik_client() -> Optional["Opik"]:
    if _init_attempted:
        return _client
    return init_opik()


def reset_opik_client() -> None:
    """Forget the cached client so the next call rebuilds it from current settings."""
    global _client, _init_attempted

    with _client_lock:
        _client = None
        _init_attempted = False
