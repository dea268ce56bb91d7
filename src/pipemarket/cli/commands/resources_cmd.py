from __future__ import annotations

import argparse

from rich.table import Table

from pipemarket.application.services.project_service import ProjectService
from pipemarket.application.services.registry_service import RegistryService
from pipemarket.application.services.resource_service import ResourceService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError
from pipemarket.domain.models.resource import ResourceView
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("resources", help="List catalog resources")
    parser.add_argument("--tag", action="append", default=[], help="Only resources carrying any of these tags")
    parser.add_argument("--user", type=int, default=None, help="Only resources uploaded by this user id")
    parser.set_defaults(handler=run)

    show = subparsers.add_parser("show", help="Show a single resource")
    show.add_argument("resource_id", type=int)
    show.set_defaults(handler=run_show)


def _require_init(ctx: CLIContext) -> ResourceRepo:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )
    return ResourceRepo(ctx.paths.db_path)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    registry = RegistryService(_require_init(ctx))
    if args.tag:
        resources = registry.get_by_tags(args.tag)
    elif args.user is not None:
        resources = registry.get_all_by_user(args.user)
    else:
        resources = registry.get_all()

    ctx.console.print(_table(f"Resources ({len(resources)})", resources))
    return 0


def run_show(args: argparse.Namespace, ctx: CLIContext) -> int:
    service = ResourceService(_require_init(ctx), readme_dir=ctx.paths.readme_dir)
    resource = service.get_by_id(args.resource_id)
    ctx.console.print(_table(f"Resource {resource.id}", [resource]))
    ctx.console.print(f"Description: {resource.description or '-'}")
    ctx.console.print(
        f"GitHub: {resource.github.owner}/{resource.github.repository}/{resource.github.path}"
    )
    ctx.console.print(f"Readme: {'yes' if service.does_readme_exist(resource.id) else 'no'}")
    return 0


def _table(title: str, resources: list[ResourceView]) -> Table:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Tags", overflow="fold")
    table.add_column("Uploader")
    table.add_column("Downloads")
    table.add_column("Rating")

    for r in resources:
        rating = f"{r.rating_mean:.2f} ({r.rating_count})" if r.rating_count else "-"
        table.add_row(
            str(r.id),
            r.name,
            r.type,
            ", ".join(r.tags),
            str(r.uploader_id),
            str(r.downloads),
            rating,
        )
    return table
