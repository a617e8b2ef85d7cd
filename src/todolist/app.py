from __future__ import annotations

from pathlib import Path

import click
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from pydantic_settings.main import SettingsConfigDict

from todolist.logging_utils import level_from_name, logger, set_level
from todolist.models import Todo
from todolist.storage import DEFAULT_QUOTA_BYTES, LocalStorage
from todolist.store import DEFAULT_STORAGE_KEY, TodoListStore


def _default_storage_path() -> Path:
    return Path(click.get_app_dir("todolist")) / "storage.json"


class Settings(BaseSettings):
    STORAGE_PATH: Path = Field(default_factory=_default_storage_path)

    STORAGE_KEY: str = DEFAULT_STORAGE_KEY

    STORAGE_QUOTA_BYTES: int = Field(default=DEFAULT_QUOTA_BYTES, gt=0)

    LOG_LEVEL: str = "warning"

    model_config = SettingsConfigDict(env_prefix="TODO_", env_file=".env", extra="ignore")

    @field_validator("LOG_LEVEL")
    @classmethod
    def _known_level(cls, level: str) -> str:
        level_from_name(level)
        return level.lower()


def open_store(settings: Settings) -> TodoListStore:
    storage = LocalStorage(settings.STORAGE_PATH, quota_bytes=settings.STORAGE_QUOTA_BYTES)
    return TodoListStore.load(storage, settings.STORAGE_KEY)


def render(store: TodoListStore) -> str:
    """Text view of the store: one numbered line per todo, completed ones struck through"""
    if not store.todos:
        lines = ["No todos."]
    else:
        lines = []
        for i, todo in enumerate(store.todos, 1):
            mark = "[x]" if todo.completed else "[ ]"
            title = click.style(todo.title, strikethrough=todo.completed, dim=todo.completed)
            editing = click.style("  (editing)", fg="yellow") if todo.id == store.editing_id else ""
            lines.append(f"{i:>3}. {mark} {title}  {click.style(todo.id[:8], dim=True)}{editing}")
    return "\n".join(lines)


def resolve_ref(todos: tuple[Todo, ...], ref: str) -> str:
    """
    Turn what the user typed into a todo id.

    Accepts the 1-based position printed by `list`, a full id, or an id prefix matching exactly one todo.
    """
    ref = ref.strip()
    if not ref:
        raise click.BadParameter("Say which todo.", param_hint="REF")

    if ref.isdecimal() and 1 <= int(ref) <= len(todos):
        return todos[int(ref) - 1].id

    matches = [todo.id for todo in todos if todo.id == ref]
    if not matches:
        matches = [todo.id for todo in todos if todo.id.startswith(ref)]

    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise click.BadParameter(f"No todo matches `{ref}`.", param_hint="REF")
    raise click.BadParameter(f"`{ref}` matches {len(matches)} todos, use a longer prefix.", param_hint="REF")


def _echo_error(store: TodoListStore) -> None:
    if store.error:
        click.secho(store.error, fg="red", err=True)


def _finish(store: TodoListStore) -> None:
    """Exit non-zero when the last write failed"""
    if store.error:
        _echo_error(store)
        click.get_current_context().exit(1)


@click.group(help="Keep a todo list in local storage.")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    Manage todos

    Usage:
        todo add Buy milk
        todo list
        todo toggle 1

        TODO_LOG_LEVEL=debug todo list # Enable debug logging
    """
    settings = Settings()
    set_level(level_from_name(settings.LOG_LEVEL), logger=logger)
    logger.debug(f"Using storage file {settings.STORAGE_PATH}.")
    ctx.obj = open_store(settings)


@cli.command("list", help="Show all todos.")
@click.pass_obj
def list_command(store: TodoListStore) -> None:
    click.echo(render(store))
    _echo_error(store)


@cli.command(help="Add a todo.")
@click.argument("title", nargs=-1, required=True)
@click.pass_obj
def add(store: TodoListStore, title: tuple[str, ...]) -> None:
    if not store.add_todo(" ".join(title)):
        raise click.UsageError("Title must not be empty.")
    click.echo(f"Added: {store.todos[-1].title}")
    _finish(store)


@cli.command(help="Mark a todo done, or not done again.")
@click.argument("ref")
@click.pass_obj
def toggle(store: TodoListStore, ref: str) -> None:
    todo_id = resolve_ref(store.todos, ref)
    store.toggle_todo(todo_id)
    todo = store.get(todo_id)
    click.echo(f"{'Completed' if todo.completed else 'Reopened'}: {todo.title}")
    _finish(store)


@cli.command(help="Delete a todo.")
@click.argument("ref")
@click.pass_obj
def delete(store: TodoListStore, ref: str) -> None:
    todo_id = resolve_ref(store.todos, ref)
    title = store.get(todo_id).title
    store.delete_todo(todo_id)
    click.echo(f"Deleted: {title}")
    _finish(store)


@cli.command(help="Change the title of a todo.")
@click.argument("ref")
@click.argument("title", nargs=-1, required=True)
@click.pass_obj
def rename(store: TodoListStore, ref: str, title: tuple[str, ...]) -> None:
    todo_id = resolve_ref(store.todos, ref)
    store.start_edit(todo_id)
    if not store.save_edit(" ".join(title)):
        raise click.UsageError("Title must not be empty.")
    click.echo(f"Renamed: {store.get(todo_id).title}")
    _finish(store)


SHELL_HELP = """\
Commands:
  add TITLE     add a todo
  toggle REF    mark done / not done
  delete REF    delete a todo
  edit REF      start editing a todo
  save TITLE    save the todo being edited
  cancel        stop editing
  list          show todos
  quit          leave the shell"""


def _shell_step(store: TodoListStore, line: str) -> bool:
    """Run one shell line. Returns False when the shell should stop."""
    words = line.strip().split(maxsplit=1)
    if not words:
        return True

    verb, rest = words[0].lower(), words[1] if len(words) > 1 else ""
    match verb:
        case "quit" | "exit":
            return False
        case "help" | "?":
            click.echo(SHELL_HELP)
        case "list" | "ls":
            click.echo(render(store))
        case "add":
            if not store.add_todo(rest):
                click.secho("Title must not be empty.", fg="red", err=True)
        case "toggle" | "delete" | "edit":
            todo_id = resolve_ref(store.todos, rest)
            if verb == "toggle":
                store.toggle_todo(todo_id)
            elif verb == "delete":
                store.delete_todo(todo_id)
            else:
                store.start_edit(todo_id)
        case "save":
            if store.editing_id is None:
                click.secho("Nothing is being edited.", fg="red", err=True)
            elif not store.save_edit(rest):
                click.secho("Title must not be empty.", fg="red", err=True)
        case "cancel":
            store.cancel_edit()
        case _:
            click.secho(f"Unknown command: {verb}. Type `help` for a list.", fg="red", err=True)
    return True


@cli.command(help="Interactive session with edit mode.")
@click.pass_obj
def shell(store: TodoListStore) -> None:
    def on_change(changed: TodoListStore) -> None:
        click.echo(render(changed))
        _echo_error(changed)

    store.on_change = on_change
    click.echo(render(store))
    _echo_error(store)

    while True:
        try:
            line = click.prompt("todo", default="", show_default=False, prompt_suffix="> ")
        except click.Abort:
            break
        try:
            if not _shell_step(store, line):
                break
        except click.BadParameter as e:
            click.secho(e.format_message(), fg="red", err=True)


if __name__ == "__main__":
    cli()
