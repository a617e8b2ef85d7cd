from __future__ import annotations

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, RootModel, model_validator


class Todo(BaseModel):
    """A single task. Never mutated, transitions build new records with `model_copy`."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    completed: bool = False


class TodoList(RootModel[list[Todo]]):
    """Persisted shape of the list: a JSON array of todo records"""

    @model_validator(mode="after")
    def _unique_ids_and_titles(self) -> TodoList:
        seen: set[str] = set()
        for todo in self.root:
            if todo.id in seen:
                raise ValueError(f"Duplicate todo id: {todo.id}")
            if not todo.title.strip():
                raise ValueError(f"Empty title for todo id: {todo.id}")
            seen.add(todo.id)
        return self

    @classmethod
    def of(cls, todos: Sequence[Todo]) -> TodoList:
        return cls(list(todos))
