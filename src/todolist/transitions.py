"""
Pure transitions over a todo list.

Every function takes the current list and returns a new one; the input is never touched.
Titles are expected to be validated with `is_valid_title` by the caller before `add` / `rename_title`.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from uuid import uuid4

from todolist.models import Todo


def new_id() -> str:
    return str(uuid4())


def trim_title(text: str) -> str:
    return text.strip()


def is_valid_title(text: str) -> bool:
    """A title is valid when something is left after trimming"""
    return len(trim_title(text)) > 0


def find(todos: Sequence[Todo], todo_id: str) -> Todo | None:
    return next((todo for todo in todos if todo.id == todo_id), None)


def add(todos: Sequence[Todo], title: str, *, id_factory: Callable[[], str] = new_id) -> list[Todo]:
    """Append a new, not yet completed todo"""
    taken = {todo.id for todo in todos}
    todo_id = id_factory()
    while todo_id in taken:
        todo_id = id_factory()

    return [*todos, Todo(id=todo_id, title=trim_title(title), completed=False)]


def remove(todos: Sequence[Todo], todo_id: str) -> list[Todo]:
    return [todo for todo in todos if todo.id != todo_id]


def toggle_completed(todos: Sequence[Todo], todo_id: str) -> list[Todo]:
    return [todo.model_copy(update={"completed": not todo.completed}) if todo.id == todo_id else todo for todo in todos]


def rename_title(todos: Sequence[Todo], todo_id: str, new_title: str) -> list[Todo]:
    title = trim_title(new_title)
    return [todo.model_copy(update={"title": title}) if todo.id == todo_id else todo for todo in todos]
