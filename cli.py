#!/usr/bin/env python3
"""CLI for Campaign Hub."""

import json
import logging
import sys

import click

from campaign_hub.config import CHAT_HISTORY_LIMIT, DATABASE_PATH, LOG_LEVEL
from campaign_hub.generators import ContentGenerator
from campaign_hub.models.factory import get_backend, list_backends
from campaign_hub.storage import Storage, StorageError


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--db",
    "db_path",
    default=str(DATABASE_PATH),
    show_default=True,
    help="Path to the sqlite database",
)
@click.pass_context
def cli(ctx: click.Context, db_path: str):
    """Campaign Hub - tabletop campaigns with an AI game master."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = {"db_path": db_path}


def open_storage(ctx: click.Context) -> Storage:
    try:
        storage = Storage(ctx.obj["db_path"])
    except StorageError as e:
        click.echo(f"Error opening database: {e}", err=True)
        sys.exit(1)
    ctx.call_on_close(storage.close)
    return storage


# ============================================================================
# Database commands
# ============================================================================


@cli.group()
def db():
    """Manage the database."""
    pass


@db.command("init")
@click.pass_context
def db_init(ctx: click.Context):
    """Create the database and apply pending migrations."""
    storage = open_storage(ctx)
    click.echo(f"Database ready: {storage.db.db_path}")
    click.echo(f"  Schema version: {storage.db.schema_version}")


# ============================================================================
# User commands
# ============================================================================


@cli.group()
def user():
    """Manage user accounts."""
    pass


@user.command("create")
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--email", "-e", default=None, help="Email address")
@click.pass_context
def user_create(ctx: click.Context, username: str, password: str, email: str | None):
    """Create a user account."""
    storage = open_storage(ctx)
    try:
        u = storage.users.create(username, password, email)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Created user: {u.username} (id {u.id})")


# ============================================================================
# Campaign commands
# ============================================================================


@cli.group()
def campaign():
    """Inspect campaigns."""
    pass


@campaign.command("list")
@click.pass_context
def campaign_list(ctx: click.Context):
    """List all campaigns."""
    storage = open_storage(ctx)
    campaigns = storage.campaigns.list()
    if not campaigns:
        click.echo("No campaigns found.")
        return

    click.echo("Campaigns:")
    for c in campaigns:
        players = len(storage.campaigns.list_memberships(c.id))
        ai = " (AI DM)" if c.is_ai_dm else ""
        click.echo(f"  {c.id}: {c.name} [{c.status}, {players} characters]{ai}")


@campaign.command("show")
@click.argument("campaign_id", type=int)
@click.pass_context
def campaign_show(ctx: click.Context, campaign_id: int):
    """Show campaign details."""
    storage = open_storage(ctx)
    c = storage.campaigns.get(campaign_id)
    if not c:
        click.echo(f"Campaign '{campaign_id}' not found.", err=True)
        sys.exit(1)

    dm = storage.users.get(c.dm_id)
    click.echo(f"Campaign: {c.name}")
    click.echo(f"  ID: {c.id}")
    click.echo(f"  DM: {dm.username if dm else c.dm_id}")
    click.echo(f"  Status: {c.status}")
    click.echo(f"  Created: {c.created_at}")
    if c.setting:
        click.echo(f"  Setting: {c.setting}")
    if c.description:
        click.echo(f"\nDescription:\n  {c.description}")

    characters = storage.campaigns.list_characters(c.id, storage.characters)
    if characters:
        click.echo("\nCharacters:")
        for ch in characters:
            bot = " [bot]" if ch.is_bot else ""
            click.echo(f"  - {ch.name}: level {ch.level} {ch.race} {ch.character_class}{bot}")

    adventures = storage.adventures.list_for_campaign(c.id)
    if adventures:
        click.echo("\nAdventures:")
        for a in adventures:
            click.echo(f"  - {a.title} ({a.status})")


# ============================================================================
# Chat commands
# ============================================================================


@cli.group()
def chat():
    """Read campaign chat."""
    pass


@chat.command("history")
@click.argument("campaign_id", type=int)
@click.option("--limit", "-n", default=CHAT_HISTORY_LIMIT, type=int, help="Number of messages")
@click.pass_context
def chat_history(ctx: click.Context, campaign_id: int, limit: int):
    """Print the latest chat messages of a campaign."""
    storage = open_storage(ctx)
    if not storage.campaigns.get(campaign_id):
        click.echo(f"Campaign '{campaign_id}' not found.", err=True)
        sys.exit(1)

    messages = storage.chat.history(campaign_id, limit)
    if not messages:
        click.echo("No messages yet.")
        return

    names: dict[int, str] = {}
    for m in messages:
        if m.user_id not in names:
            u = storage.users.get(m.user_id)
            names[m.user_id] = u.username if u else f"user-{m.user_id}"
        click.echo(f"[{m.timestamp:%Y-%m-%d %H:%M}] {names[m.user_id]}: {m.content}")


# ============================================================================
# Generation commands
# ============================================================================


@cli.group()
@click.option(
    "--backend",
    "-b",
    type=click.Choice(list_backends()),
    default=None,
    help="LLM backend to use (default: from LLM_BACKEND env)",
)
@click.pass_context
def generate(ctx: click.Context, backend: str | None):
    """Generate content with the LLM and print it as JSON."""
    try:
        llm = get_backend(backend)
    except ValueError as e:
        click.echo(f"Error initializing LLM backend: {e}", err=True)
        sys.exit(1)
    ctx.obj["generator"] = ContentGenerator(llm)


def _print_json(data) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


@generate.command("npc")
@click.option("--race", default=None)
@click.option("--role", default=None)
@click.option("--alignment", default=None)
@click.option("--hostile", is_flag=True, help="Make the NPC hostile to the party")
@click.pass_context
def generate_npc(ctx: click.Context, race, role, alignment, hostile: bool):
    """Generate an NPC."""
    _print_json(
        ctx.obj["generator"].generate_npc(
            race=race, role=role, alignment=alignment, is_hostile=hostile
        )
    )


@generate.command("character")
@click.option("--race", default=None)
@click.option("--class", "character_class", default=None)
@click.option("--level", default=1, type=click.IntRange(1, 20))
@click.option("--alignment", default=None)
@click.pass_context
def generate_character(ctx: click.Context, race, character_class, level: int, alignment):
    """Generate a character sheet."""
    _print_json(
        ctx.obj["generator"].generate_character(
            race=race, character_class=character_class, level=level, alignment=alignment
        )
    )


@generate.command("campaign")
@click.option("--genre", default=None)
@click.option("--theme", default=None)
@click.option("--tone", default=None)
@click.pass_context
def generate_campaign(ctx: click.Context, genre, theme, tone):
    """Generate a campaign world."""
    _print_json(ctx.obj["generator"].generate_campaign(genre, theme, tone))


# ============================================================================
# Server
# ============================================================================


@cli.command("serve")
@click.option("--host", "-h", default="127.0.0.1", help="Host to bind to")
@click.option("--port", "-p", default=5000, type=int, help="Port to bind to")
@click.option("--debug", "-d", is_flag=True, help="Enable debug mode")
def serve(host: str, port: int, debug: bool):
    """Start the API and socket server (development only).

    For production, run wsgi.py under a server with WebSocket support:

    \b
    Gunicorn:
        gunicorn -w 1 --threads 100 -b 0.0.0.0:5000 wsgi:app
    """
    from api import app, socketio

    click.echo(f"Starting development server at http://{host}:{port}")
    click.echo(f"Swagger UI available at: http://{host}:{port}/api/docs/")
    click.echo("\nPress Ctrl+C to stop\n")

    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    cli()
