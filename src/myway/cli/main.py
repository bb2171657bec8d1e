"""MyWay CLI — schema setup, bootstrap accounts, run the server.

Usage:
    myway init-db                                       # Create all tables
    myway create-user --email a@b.io --name Ada --password s3cret --role ORGANIZER
    myway serve --port 8080 --reload                    # Run uvicorn
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import sys

import click

from myway.config import settings
from myway.db.models import Role

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous click handler.

    Inside an already running loop (CliRunner under an async test) the
    coroutine is offloaded to a worker thread with its own loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


async def _init_db() -> None:
    from myway.db.engine import create_schema, engine

    try:
        await create_schema()
    finally:
        await engine.dispose()


async def _create_user(email: str, name: str, password: str, role: Role):
    from myway.auth.dependencies import get_codec
    from myway.auth.sessions import SessionManager
    from myway.db.engine import async_session_factory, engine

    try:
        async with async_session_factory() as db:
            manager = SessionManager(db, get_codec(), bcrypt_rounds=settings.bcrypt_rounds)
            return await manager.sign_up(email, password, name, role)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="myway")
def cli():
    """MyWay LMS backend administration."""


@cli.command("init-db")
def init_db():
    """Create the database schema (idempotent)."""
    _run(_init_db())
    click.secho("Schema created.", fg="green")


@cli.command("create-user")
@click.option("--email", required=True)
@click.option("--name", required=True)
@click.option("--password", required=True, prompt=True, hide_input=True)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role]),
    default=Role.STUDENT.value,
    show_default=True,
)
def create_user(email: str, name: str, password: str, role: str):
    """Register a user through the normal sign-up path."""
    from myway.errors import MyWayError

    try:
        tokens = _run(_create_user(email, name, password, Role(role)))
    except MyWayError as e:
        click.secho(f"Error: {e.detail}", fg="red", err=True)
        sys.exit(1)
    click.secho(f"Created {tokens.user.email} ({tokens.user.role.value})", fg="green")
    click.echo(f"id: {tokens.user.id}")


@cli.command()
@click.option("--host", default=settings.host, show_default=True)
@click.option("--port", default=settings.port, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Auto-reload on code changes.")
def serve(host: str, port: int, reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run("myway.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
