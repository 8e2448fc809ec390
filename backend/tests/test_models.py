from smart_todo.db.base import Base
from smart_todo.db import models  # noqa: F401  ensure models are loaded
from smart_todo.db.models.todo import Todo


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())
    expected = {
        "users",
        "todos",
    }

    assert expected.issubset(table_names)


def test_todo_position_is_deferred_and_nullable() -> None:
    column = Todo.__table__.c.position

    assert column.nullable is True
    assert Todo.__mapper__.attrs["position"].deferred is True


def test_recurring_flag_follows_repeat_type() -> None:
    assert Todo(title="물 마시기", repeat_type="daily").is_recurring is True
    assert Todo(title="물 마시기", repeat_type="none").is_recurring is False
