from __future__ import annotations

from collections.abc import Callable, Sequence

from pydantic import ValidationError

from todolist import transitions
from todolist.logging_utils import logger
from todolist.models import Todo, TodoList
from todolist.storage import KeyValueStorage, StorageError

DEFAULT_STORAGE_KEY = "todos"


class TodoListStore:
    """
    Owns the current todo list and keeps the persisted copy in step with it.

    The list is replaced, never mutated, on every change. After each replacement the new list is written
    to storage; the in-memory list is updated whether or not that write succeeds, and `error` holds a
    message describing the last failure (or `None` after a successful write).

    `editing_id` is the todo currently being edited. It lives only in memory.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = DEFAULT_STORAGE_KEY,
        todos: Sequence[Todo] = (),
        error: str | None = None,
        on_change: Callable[[TodoListStore], None] | None = None,
        id_factory: Callable[[], str] = transitions.new_id,
    ) -> None:
        self._storage = storage
        self._key = key
        self._todos: tuple[Todo, ...] = tuple(todos)
        self._editing_id: str | None = None
        self._error = error
        self.on_change = on_change
        self._id_factory = id_factory

    @classmethod
    def load(
        cls,
        storage: KeyValueStorage,
        key: str = DEFAULT_STORAGE_KEY,
        *,
        on_change: Callable[[TodoListStore], None] | None = None,
        id_factory: Callable[[], str] = transitions.new_id,
    ) -> TodoListStore:
        """Start from the persisted list, or from an empty one when there is none or it cannot be read"""
        todos: list[Todo] = []
        error = None
        try:
            raw = storage.get_item(key)
            if raw is not None:
                todos = TodoList.model_validate_json(raw).root
        except (StorageError, ValidationError) as e:
            error = f"Failed to load todos: {e}"
            logger.warning(error)

        logger.info(f"Loaded {len(todos)} todos from key `{key}`.")
        return cls(storage, key=key, todos=todos, error=error, on_change=on_change, id_factory=id_factory)

    @property
    def todos(self) -> tuple[Todo, ...]:
        return self._todos

    @property
    def editing_id(self) -> str | None:
        return self._editing_id

    @property
    def error(self) -> str | None:
        return self._error

    def get(self, todo_id: str) -> Todo | None:
        return transitions.find(self._todos, todo_id)

    def add_todo(self, title: str) -> bool:
        if not transitions.is_valid_title(title):
            logger.debug(f"Rejected empty title: {title!r}")
            return False

        self._replace(transitions.add(self._todos, title, id_factory=self._id_factory))
        logger.info(f"Added task: {self._todos[-1].title}")
        return True

    def delete_todo(self, todo_id: str) -> None:
        if self._editing_id == todo_id:
            self._editing_id = None
        self._replace(transitions.remove(self._todos, todo_id))
        logger.info(f"Deleted task: {todo_id}")

    def toggle_todo(self, todo_id: str) -> None:
        self._replace(transitions.toggle_completed(self._todos, todo_id))
        logger.info(f"Toggled task: {todo_id}")

    def start_edit(self, todo_id: str) -> bool:
        if self.get(todo_id) is None:
            logger.debug(f"Cannot edit unknown task: {todo_id}")
            return False

        self._editing_id = todo_id
        self._notify()
        return True

    def save_edit(self, title: str) -> bool:
        """Rename the todo being edited. An invalid title leaves edit mode on and nothing changed."""
        if self._editing_id is None or not transitions.is_valid_title(title):
            return False

        todo_id = self._editing_id
        self._editing_id = None
        self._replace(transitions.rename_title(self._todos, todo_id, title))
        logger.info(f"Renamed task {todo_id} to: {transitions.trim_title(title)}")
        return True

    def cancel_edit(self) -> None:
        self._editing_id = None
        self._notify()

    def _replace(self, todos: list[Todo]) -> None:
        self._persist(todos)
        self._todos = tuple(todos)
        self._notify()

    def _persist(self, todos: list[Todo]) -> None:
        try:
            self._storage.set_item(self._key, TodoList.of(todos).model_dump_json())
        except (StorageError, ValueError) as e:
            self._error = f"Storage error: {e}"
            logger.error(self._error)
        else:
            self._error = None

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self)
