from itertools import count

import pytest

from todolist import transitions
from todolist.models import Todo


@pytest.fixture
def todos() -> list[Todo]:
    return [
        Todo(id="1", title="Task 1", completed=False),
        Todo(id="2", title="Task 2", completed=True),
    ]


@pytest.mark.parametrize(("text", "expected"), [("", False), ("   ", False), ("\t\n", False), ("x", True), ("  x ", True)])
def test_is_valid_title(text, expected):
    assert transitions.is_valid_title(text) is expected


def test_add_appends_trimmed_incomplete_todo(todos):
    new_todos = transitions.add(todos, "  New Task  ")

    assert len(new_todos) == len(todos) + 1
    assert new_todos[:-1] == todos
    assert new_todos[-1].title == "New Task"
    assert new_todos[-1].completed is False
    assert new_todos[-1].id not in {todo.id for todo in todos}


def test_add_to_empty_list():
    new_todos = transitions.add([], "First")
    assert [todo.title for todo in new_todos] == ["First"]


def test_add_regenerates_colliding_ids(todos):
    ids = iter(["1", "2", "3"])
    new_todos = transitions.add(todos, "Third", id_factory=lambda: next(ids))
    assert new_todos[-1].id == "3"


def test_add_generates_distinct_ids():
    todos: list[Todo] = []
    for i in range(50):
        todos = transitions.add(todos, f"Task {i}")
    assert len({todo.id for todo in todos}) == 50


def test_add_leaves_input_untouched(todos):
    before = list(todos)
    transitions.add(todos, "Another")
    assert todos == before


def test_remove_by_id(todos):
    new_todos = transitions.remove(todos, "1")
    assert new_todos == [Todo(id="2", title="Task 2", completed=True)]


def test_remove_keeps_relative_order():
    counter = count()
    todos: list[Todo] = []
    for title in ["a", "b", "c", "d"]:
        todos = transitions.add(todos, title, id_factory=lambda: str(next(counter)))

    new_todos = transitions.remove(todos, "1")
    assert [todo.title for todo in new_todos] == ["a", "c", "d"]


def test_remove_unknown_id_is_noop(todos):
    assert transitions.remove(todos, "missing") == todos


def test_toggle_flips_only_matching_entry(todos):
    new_todos = transitions.toggle_completed(todos, "1")
    assert new_todos == [
        Todo(id="1", title="Task 1", completed=True),
        Todo(id="2", title="Task 2", completed=True),
    ]


def test_toggle_twice_is_identity(todos):
    assert transitions.toggle_completed(transitions.toggle_completed(todos, "2"), "2") == todos


def test_toggle_unknown_id_is_noop(todos):
    assert transitions.toggle_completed(todos, "missing") == todos


def test_rename_changes_only_title(todos):
    new_todos = transitions.rename_title(todos, "1", "Updated Task")
    assert new_todos == [
        Todo(id="1", title="Updated Task", completed=False),
        Todo(id="2", title="Task 2", completed=True),
    ]


def test_rename_trims_title(todos):
    assert transitions.rename_title(todos, "2", "  Spaced  ")[1].title == "Spaced"


def test_rename_unknown_id_is_noop(todos):
    assert transitions.rename_title(todos, "missing", "Whatever") == todos


def test_find(todos):
    assert transitions.find(todos, "2") == todos[1]
    assert transitions.find(todos, "missing") is None


def test_todo_is_frozen(todos):
    with pytest.raises(ValueError):
        todos[0].title = "Changed"
