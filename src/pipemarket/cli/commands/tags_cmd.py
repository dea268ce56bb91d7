from __future__ import annotations

import argparse

from pipemarket.application.services.project_service import ProjectService
from pipemarket.application.services.registry_service import RegistryService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("tags", help="List every tag in the catalog")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )

    tags = RegistryService(ResourceRepo(ctx.paths.db_path)).get_all_tags()
    if not tags:
        ctx.console.print("[yellow]No tags yet[/yellow]")
        return 0
    for tag in tags:
        ctx.console.print(tag)
    return 0
