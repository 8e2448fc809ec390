"""Database utilities and models."""

from smart_todo.db.base import Base
from smart_todo.db import models  # noqa: F401  (imported for side effects)

__all__ = ["Base"]
