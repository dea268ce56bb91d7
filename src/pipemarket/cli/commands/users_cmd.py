from __future__ import annotations

import argparse

from rich.table import Table

from pipemarket.application.services.project_service import ProjectService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError
from pipemarket.infrastructure.db.repos.user_repo import UserRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("users", help="List users who have signed in with GitHub")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )

    users = UserRepo(ctx.paths.db_path).list_all()
    if not users:
        ctx.console.print("[yellow]No users yet[/yellow]")
        return 0

    # Tokens stay out of the listing.
    table = Table(title=f"Users ({len(users)})")
    table.add_column("ID", justify="right")
    table.add_column("Username")
    table.add_column("First seen")
    table.add_column("Last login")
    for user in users:
        table.add_row(str(user.id), user.username, user.created_at, user.updated_at)
    ctx.console.print(table)
    return 0
