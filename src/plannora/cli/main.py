"""Plannora operator CLI.

Usage:
    plannora serve                      # Run the API with uvicorn
    plannora init-db                    # Create missing tables (dev/test; prod uses alembic)
    plannora create-user -n Alex -e a@example.com   # Prompts for the password
    plannora list-users                 # Registered accounts

Commands talk to the database directly through the same services the
API uses, so uniqueness and hashing rules are identical.
"""

from __future__ import annotations

import asyncio
import sys

import click

from plannora import __version__
from plannora.config import settings
from plannora.errors import PlannoraError
from plannora.logging_config import configure_logging

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Domain errors become a red message and exit code 1.
    """
    try:
        return asyncio.run(coro)
    except PlannoraError as e:
        click.secho(f"Error: {e.message}", fg="red", err=True)
        sys.exit(1)


async def _with_session(fn):
    from plannora.db.engine import database

    try:
        factory = await database.connect()
        async with factory() as session:
            return await fn(session)
    finally:
        await database.dispose()


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="plannora")
def main():
    """Plannora — event planning backend."""
    configure_logging(settings.log_level, settings.json_logs)


@main.command()
@click.option("--host", default=None, help="Bind address (default: PLANNORA_HOST)")
@click.option("--port", "-p", type=int, default=None, help="Port (default: PLANNORA_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (dev only)")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "plannora.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db():
    """Create any missing tables in PLANNORA_DATABASE_URL."""

    async def _impl():
        from plannora.db.engine import database

        try:
            await database.create_all()
        finally:
            await database.dispose()

    _run(_impl())
    click.secho("Tables created", fg="green")


@main.command("create-user")
@click.option("--name", "-n", required=True, help="Display name")
@click.option("--email", "-e", required=True, help="Login email")
@click.password_option(help="Password (prompted if omitted)")
def create_user(name: str, email: str, password: str):
    """Register an account without going through the API."""
    from plannora.schemas.user import RegisterRequest
    from plannora.services.user_service import UserService

    try:
        body = RegisterRequest(name=name, email=email, password=password)
    except ValueError as e:
        raise click.BadParameter(str(e))

    async def _impl(session):
        return await UserService(session).register(body.name, body.email, body.password)

    user = _run(_with_session(_impl))
    click.secho(f"Created user {user.email} ({user.id})", fg="green")


@main.command("list-users")
def list_users():
    """List registered accounts (never shows password hashes)."""
    from plannora.services.user_service import UserService

    async def _impl(session):
        return await UserService(session).list_users()

    users = _run(_with_session(_impl))
    if not users:
        click.echo("No users registered.")
        return

    rows = [
        {
            "id": str(u.id),
            "email": u.email,
            "name": u.name,
            "created": u.created_at.strftime("%Y-%m-%d %H:%M") if u.created_at else "—",
        }
        for u in users
    ]
    _print_table(
        rows,
        [("ID", "id", 36), ("EMAIL", "email", 32), ("NAME", "name", 20), ("CREATED", "created", 16)],
    )
    click.echo(f"\n{len(users)} user(s)")


if __name__ == "__main__":
    main()
