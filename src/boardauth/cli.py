"""Operator CLI for the board authentication service."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncEngine

from boardauth import __version__
from boardauth.config import get_settings
from boardauth.core.auth.sessions import RefreshSessionManager
from boardauth.core.database import Base, create_engine, create_session_factory
from boardauth.core.errors import ConflictError
from boardauth.modules.users.schemas import UserCreate
from boardauth.modules.users.services import UserService


T = TypeVar("T")

console = Console()

app = typer.Typer(
    name="boardauth",
    help="Manage accounts and refresh sessions of the board auth service.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _run(work: Callable[[AsyncEngine], Awaitable[T]]) -> T:
    """Run ``work`` against a fresh engine and dispose of it afterwards."""

    async def runner() -> T:
        engine = create_engine(get_settings())
        try:
            return await work(engine)
        finally:
            await engine.dispose()

    return asyncio.run(runner())


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """Board auth CLI - manage accounts and refresh sessions."""
    if version:
        console.print(f"[bold cyan]boardauth[/bold cyan] version {__version__}")
        raise typer.Exit()


@app.command(name="init-db")
def init_db() -> None:
    """Create the users and refresh session tables if missing."""

    async def work(engine: AsyncEngine) -> None:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    _run(work)
    console.print("[green]Database tables are in place.[/green]")


@app.command(name="create-user")
def create_user(
    username: str = typer.Option(..., "--username", "-u", help="Login name"),
    password: str = typer.Option(
        ...,
        "--password",
        "-p",
        prompt=True,
        hide_input=True,
        confirmation_prompt=True,
        help="Password (prompted when omitted)",
    ),
    email: str | None = typer.Option(None, "--email", help="Contact address"),
    display_name: str | None = typer.Option(None, "--display-name", help="Shown name"),
    role: str = typer.Option("user", "--role", help="Board role (user or admin)"),
) -> None:
    """Create a local account with a bcrypt-hashed password."""
    try:
        data = UserCreate(
            username=username,
            password=password,
            email=email,
            display_name=display_name,
            role=role,
        )
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]Invalid {field}:[/red] {error['msg']}")
        raise typer.Exit(code=2) from exc

    async def work(engine: AsyncEngine) -> tuple[str, str]:
        async with create_session_factory(engine)() as db:
            user = await UserService(db).create_user(data)
            await db.commit()
            return str(user.id), user.username

    try:
        user_id, created = _run(work)
    except ConflictError as exc:
        console.print(f"[red]Error:[/red] {exc.message}")
        raise typer.Exit(code=1) from exc

    table = Table(title="User created", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("id", user_id)
    table.add_row("username", created)
    table.add_row("role", data.role)
    console.print(table)


@app.command(name="sweep-sessions")
def sweep_sessions() -> None:
    """Delete refresh sessions past their expiry."""

    async def work(engine: AsyncEngine) -> int:
        return await RefreshSessionManager(create_session_factory(engine)).delete_expired()

    deleted = _run(work)
    console.print(f"Deleted [bold]{deleted}[/bold] expired refresh session(s).")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
