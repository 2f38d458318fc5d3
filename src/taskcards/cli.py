"""Command line interface for taskcards."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, NoReturn, Optional

import click
import yaml
from rich.console import Console, Group
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from taskcards.config import ConfigError, ConfigManager, TaskCardsConfig
from taskcards.manager import CollectionManager
from taskcards.state import (
    Card,
    CardCollection,
    InvalidNameError,
    NoActiveCollectionError,
    NotFoundError,
    StateError,
    TaskCardsError,
)
from taskcards.storage import JsonFileStore

console = Console()

ACTIVE_COLLECTION_KEY = "activeCollection"
PRIORITIES = ("low", "medium", "high")

_ERROR_CODES: tuple[tuple[type[Exception], str], ...] = (
    (InvalidNameError, "invalid_name"),
    (NotFoundError, "not_found"),
    (NoActiveCollectionError, "no_active_collection"),
    (ConfigError, "config_error"),
    (StateError, "state_error"),
)


@dataclass
class _Session:
    """Per-invocation state shared by commands."""

    store_path: Optional[str] = None
    config: Optional[TaskCardsConfig] = None


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _fail(exc: Exception, *, json_output: bool) -> NoReturn:
    """Translate a library exception into CLI error output."""

    for exc_type, code in _ERROR_CODES:
        if isinstance(exc, exc_type):
            _handle_cli_error(str(exc), code=code, json_output=json_output, original=exc)
    _handle_cli_error(
        f"Unexpected error: {exc}",
        code="internal_error",
        json_output=json_output,
        details={"exception": type(exc).__name__},
        original=exc,
    )


def _emit_message(message: Any, *, quiet: bool) -> None:
    """Print ``message`` unless quiet mode is active."""

    if quiet:
        return
    console.print(message)


def _configure_logging(level: str) -> None:
    """Route library logging to stderr through Rich."""

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.WARNING
    logger = logging.getLogger("taskcards")
    logger.setLevel(numeric)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _load_config(ctx: click.Context, *, json_output: bool) -> TaskCardsConfig:
    """Return the effective configuration, loading it on first use."""

    session = ctx.find_object(_Session)
    if session is None:
        session = _Session()
    if session.config is None:
        overrides = {"storage.path": session.store_path} if session.store_path else None
        try:
            session.config = ConfigManager().load(cli_overrides=overrides)
        except ConfigError as exc:
            _fail(exc, json_output=json_output)
        _configure_logging(session.config.logging.level)
    return session.config


def _quiet(config: TaskCardsConfig, quiet: bool) -> bool:
    return quiet or config.cli.quiet_default


def _open_manager(ctx: click.Context, *, json_output: bool) -> CollectionManager:
    """Build a manager over the configured store, restoring the bound collection."""

    config = _load_config(ctx, json_output=json_output)
    store = JsonFileStore(config.storage.path)
    try:
        active = store.get(ACTIVE_COLLECTION_KEY) or None
        return CollectionManager(
            store,
            strict=config.storage.strict,
            sort_by_updated=config.collections.sort_by_updated,
            active_collection=active,
        )
    except StateError as exc:
        _fail(exc, json_output=json_output)


def _remember_active(manager: CollectionManager) -> None:
    """Persist the bound collection name for the next invocation."""

    manager.repository.store.set(ACTIVE_COLLECTION_KEY, manager.active_collection_name or "")


def _card_payload(card: Card) -> dict[str, Any]:
    return card.model_dump(mode="json", by_alias=True)


def _collection_payload(collection: CardCollection) -> dict[str, Any]:
    return {
        "id": collection.id,
        "name": collection.name,
        "cardCount": len(collection.cards),
        "createdAt": collection.created_at.isoformat(),
        "updatedAt": collection.updated_at.isoformat(),
    }


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun if count == 1 else noun + 's'}"


def _cards_table(cards: list[Card]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", overflow="fold")
    table.add_column("Topic", min_width=8)
    table.add_column("Label")
    table.add_column("Priority", min_width=8)
    table.add_column("Tags")
    table.add_column("Description")
    for card in cards:
        table.add_row(
            card.id,
            Text(card.topic),
            Text(card.label),
            card.priority,
            Text(", ".join(card.tags)),
            Text(card.description),
        )
    return table


def _json_option(func):
    return click.option("--json", "json_output", is_flag=True, help="Emit JSON output.")(func)


def _quiet_option(func):
    return click.option("--quiet", is_flag=True, help="Suppress non-error output.")(func)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="taskcards")
@click.option(
    "--store",
    "store_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Storage document to use instead of the configured one.",
)
@click.pass_context
def cli(ctx: click.Context, store_path: Optional[str]) -> None:
    """taskcards keeps flip-style task cards organized in named collections."""

    ctx.obj = _Session(store_path=store_path)


# Card commands ----------------------------------------------------------


@cli.command()
@click.option("-d", "--description", required=True, help="Text shown on the front of the card.")
@click.option("--topic", default="", help="Short title.")
@click.option("--label", default="", help="Short badge text.")
@click.option("--details", default="", help="Text shown on the back of the card.")
@click.option(
    "--priority",
    type=click.Choice(PRIORITIES),
    default="low",
    show_default=True,
    help="Card priority.",
)
@click.option("-t", "--tag", "tags", multiple=True, help="Tag to attach; repeat for more.")
@_json_option
@_quiet_option
@click.pass_context
def add(
    ctx: click.Context,
    description: str,
    topic: str,
    label: str,
    details: str,
    priority: str,
    tags: tuple[str, ...],
    json_output: bool,
    quiet: bool,
) -> None:
    """Create a card in the active card list."""

    if not description.strip():
        _handle_cli_error(
            "Description must not be empty.", code="invalid_input", json_output=json_output
        )
    manager = _open_manager(ctx, json_output=json_output)
    fields = {
        "topic": topic,
        "label": label,
        "description": description,
        "details": details,
        "priority": priority,
        "tags": list(tags),
    }
    try:
        card = manager.add_card(fields)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"card": _card_payload(card)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(f"[green]Added card {card.id}.[/green]", quiet=_quiet(config, quiet))


@cli.command()
@click.argument("card_id")
@click.option("-d", "--description", default=None, help="Replacement front text.")
@click.option("--topic", default=None, help="Replacement title.")
@click.option("--label", default=None, help="Replacement badge text.")
@click.option("--details", default=None, help="Replacement back text.")
@click.option("--priority", type=click.Choice(PRIORITIES), default=None, help="New priority.")
@click.option("-t", "--tag", "tags", multiple=True, help="Replace tags; repeat for more.")
@click.option("--clear-tags", is_flag=True, help="Remove every tag from the card.")
@_json_option
@_quiet_option
@click.pass_context
def edit(
    ctx: click.Context,
    card_id: str,
    description: Optional[str],
    topic: Optional[str],
    label: Optional[str],
    details: Optional[str],
    priority: Optional[str],
    tags: tuple[str, ...],
    clear_tags: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Edit CARD_ID; options left out keep their current values."""

    manager = _open_manager(ctx, json_output=json_output)
    existing = manager.get_card(card_id)
    if existing is None:
        _handle_cli_error(
            f"No card with id {card_id!r}.", code="not_found", json_output=json_output
        )

    fields = existing.to_input().model_dump()
    for key, value in (
        ("description", description),
        ("topic", topic),
        ("label", label),
        ("details", details),
        ("priority", priority),
    ):
        if value is not None:
            fields[key] = value
    if clear_tags:
        fields["tags"] = []
    if tags:
        fields["tags"] = list(tags)
    if not fields["description"].strip():
        _handle_cli_error(
            "Description must not be empty.", code="invalid_input", json_output=json_output
        )

    try:
        card = manager.update_card(card_id, fields)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)
    if card is None:
        _handle_cli_error(
            f"No card with id {card_id!r}.", code="not_found", json_output=json_output
        )

    if json_output:
        console.print_json(data={"card": _card_payload(card)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(f"[green]Updated card {card.id}.[/green]", quiet=_quiet(config, quiet))


@cli.command()
@click.argument("card_id")
@_json_option
@_quiet_option
@click.pass_context
def rm(ctx: click.Context, card_id: str, json_output: bool, quiet: bool) -> None:
    """Delete CARD_ID from the active card list."""

    manager = _open_manager(ctx, json_output=json_output)
    try:
        removed = manager.remove_card(card_id)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)
    if not removed:
        _handle_cli_error(
            f"No card with id {card_id!r}.", code="not_found", json_output=json_output
        )

    if json_output:
        console.print_json(data={"removed": card_id})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(f"[green]Removed card {escape(card_id)}.[/green]", quiet=_quiet(config, quiet))


@cli.command("list")
@click.option("-s", "--search", "query", default="", help="Filter by topic or description.")
@_json_option
@click.pass_context
def list_cards(ctx: click.Context, query: str, json_output: bool) -> None:
    """List cards in the active card list."""

    manager = _open_manager(ctx, json_output=json_output)
    cards = manager.list_cards(query)

    if json_output:
        console.print_json(
            data={
                "activeCollection": manager.active_collection_name,
                "count": len(cards),
                "cards": [_card_payload(card) for card in cards],
            }
        )
        return

    if not cards:
        if query:
            console.print("[yellow]No cards match your search.[/yellow]")
        else:
            console.print("[yellow]No cards yet. Use `taskcards add` to create one.[/yellow]")
        return
    console.print(_cards_table(cards))
    console.print(f"{_plural(len(cards), 'card')} available")


@cli.command()
@click.argument("card_id")
@_json_option
@click.pass_context
def show(ctx: click.Context, card_id: str, json_output: bool) -> None:
    """Show the front and back of CARD_ID."""

    manager = _open_manager(ctx, json_output=json_output)
    card = manager.get_card(card_id)
    if card is None:
        _handle_cli_error(
            f"No card with id {card_id!r}.", code="not_found", json_output=json_output
        )

    if json_output:
        console.print_json(data={"card": _card_payload(card)})
        return

    title = Text(card.topic or card.id)
    if card.label:
        title.append(f" [{card.label}]")
    front = Group(
        Text(card.description),
        Text(f"Priority: {card.priority}"),
        Text(f"Tags: {', '.join(card.tags) or '-'}"),
    )
    console.print(Panel(front, title=title, subtitle="front"))
    console.print(Panel(Text(card.details or "-"), title=title, subtitle="back"))


# Collection commands ----------------------------------------------------


@cli.group()
def collection() -> None:
    """Save, load and list named card collections."""


@collection.command("save")
@click.argument("name")
@_json_option
@_quiet_option
@click.pass_context
def collection_save(ctx: click.Context, name: str, json_output: bool, quiet: bool) -> None:
    """Save the active card list as NAME without switching the active collection."""

    manager = _open_manager(ctx, json_output=json_output)
    try:
        saved = manager.save_as(name)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"collection": _collection_payload(saved)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(
        f"[green]Saved {_plural(len(saved.cards), 'card')} to '{escape(saved.name)}'.[/green]",
        quiet=_quiet(config, quiet),
    )


@collection.command("new")
@click.argument("name")
@_json_option
@_quiet_option
@click.pass_context
def collection_new(ctx: click.Context, name: str, json_output: bool, quiet: bool) -> None:
    """Start an empty collection NAME and make it active."""

    manager = _open_manager(ctx, json_output=json_output)
    try:
        created = manager.create_new(name)
        _remember_active(manager)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"collection": _collection_payload(created)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(
        f"[green]Created collection '{escape(created.name)}' and made it active.[/green]",
        quiet=_quiet(config, quiet),
    )


@collection.command("load")
@click.argument("collection_id")
@_json_option
@_quiet_option
@click.pass_context
def collection_load(ctx: click.Context, collection_id: str, json_output: bool, quiet: bool) -> None:
    """Replace the active card list with collection COLLECTION_ID."""

    manager = _open_manager(ctx, json_output=json_output)
    try:
        loaded = manager.load(collection_id)
        _remember_active(manager)
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"collection": _collection_payload(loaded)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(
        f"[green]Loaded '{escape(loaded.name)}' ({_plural(len(loaded.cards), 'card')}).[/green]",
        quiet=_quiet(config, quiet),
    )


@collection.command("quick-save")
@click.option("--name", default=None, help="Name to save under when no collection is active.")
@_json_option
@_quiet_option
@click.pass_context
def collection_quick_save(
    ctx: click.Context, name: Optional[str], json_output: bool, quiet: bool
) -> None:
    """Save the active card list into the active collection.

    When no collection is active the command falls back to saving under
    --name, prompting for one if it was not given.
    """

    manager = _open_manager(ctx, json_output=json_output)
    if not manager.is_bound and name is None:
        if json_output:
            _fail(
                NoActiveCollectionError("No collection is active; pass --name to save under one."),
                json_output=json_output,
            )
        name = click.prompt("No active collection. Save as", type=str)
    try:
        saved = manager.quick_save() if manager.is_bound else manager.save_as(name or "")
    except TaskCardsError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"collection": _collection_payload(saved)})
        return
    config = _load_config(ctx, json_output=json_output)
    _emit_message(f"[green]Saved '{escape(saved.name)}'.[/green]", quiet=_quiet(config, quiet))


@collection.command("list")
@_json_option
@click.pass_context
def collection_list(ctx: click.Context, json_output: bool) -> None:
    """List saved collections."""

    manager = _open_manager(ctx, json_output=json_output)
    summaries = manager.list_collections()

    if json_output:
        console.print_json(
            data={
                "activeCollection": manager.active_collection_name,
                "collections": [summary.model_dump(mode="json") for summary in summaries],
            }
        )
        return

    if not summaries:
        console.print("[yellow]No saved collections found.[/yellow]")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", overflow="fold")
    table.add_column("Name", min_width=8)
    table.add_column("Cards", justify="right")
    table.add_column("Last updated")
    for summary in summaries:
        marker = " *" if summary.name == manager.active_collection_name else ""
        table.add_row(
            summary.id,
            Text(summary.name + marker),
            str(summary.card_count),
            summary.updated_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@collection.command("status")
@_json_option
@click.pass_context
def collection_status(ctx: click.Context, json_output: bool) -> None:
    """Show which collection, if any, the active card list is bound to."""

    manager = _open_manager(ctx, json_output=json_output)
    active = manager.active_collection_name
    count = len(manager.cards)

    if json_output:
        console.print_json(data={"activeCollection": active, "cardCount": count})
        return
    if active is None:
        console.print(f"No active collection; {_plural(count, 'card')} in the active list.")
    else:
        console.print(f"Active collection '{escape(active)}' with {_plural(count, 'card')}.")


# Theme ------------------------------------------------------------------


@cli.command()
@click.argument("name", required=False)
@_json_option
@click.pass_context
def theme(ctx: click.Context, name: Optional[str], json_output: bool) -> None:
    """Show the current theme, or switch to NAME."""

    config = _load_config(ctx, json_output=json_output)
    manager = _open_manager(ctx, json_output=json_output)
    repository = manager.repository
    if name is not None:
        try:
            repository.save_theme(name)
        except TaskCardsError as exc:
            _fail(exc, json_output=json_output)
    current = repository.load_theme(default=config.display.default_theme)

    if json_output:
        console.print_json(data={"theme": current})
        return
    console.print(f"Theme: {escape(current)}")


# Config commands --------------------------------------------------------


@cli.group()
def config() -> None:
    """Manage taskcards configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore TASKCARDS__ environment overrides.")
@_json_option
def config_view(no_env: bool, json_output: bool) -> None:
    """Print the effective configuration and where it is stored."""

    manager = ConfigManager()
    try:
        effective = manager.load(include_env=not no_env)
    except ConfigError as exc:
        _fail(exc, json_output=json_output)
    data = effective.model_dump(mode="json")

    if json_output:
        console.print_json(data={"path": str(manager.config_path), "config": data})
        return
    console.print(Text(f"# {manager.config_path}", style="dim"))
    console.print(Syntax(yaml.safe_dump(data, sort_keys=False), "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML literal to store under KEY.")
@_json_option
def config_set(key: str, value: str, json_output: bool) -> None:
    """Store VALUE under the dotted KEY, for example `storage.strict`."""

    try:
        parsed = yaml.safe_load(value)
        changed = ConfigManager().set_value(key, parsed)
    except yaml.YAMLError as exc:
        _fail(ConfigError(f"Unable to parse value: {exc}"), json_output=json_output)
    except ConfigError as exc:
        _fail(exc, json_output=json_output)

    if json_output:
        console.print_json(data={"key": key, "value": parsed, "changed": changed})
    elif changed:
        console.print(f"[green]Updated {escape(key)}.[/green]")
    else:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
