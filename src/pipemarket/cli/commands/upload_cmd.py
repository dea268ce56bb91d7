from __future__ import annotations

import argparse

from pipemarket.application.services.project_service import ProjectService
from pipemarket.application.services.resource_service import ResourceService
from pipemarket.application.services.upload_service import UploadService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError
from pipemarket.domain.models.resource import GithubPointer
from pipemarket.infrastructure.db.repos.resource_repo import ResourceRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("upload", help="Register a new task or pipeline")
    parser.add_argument("name")
    parser.add_argument("--type", default="task", help="Resource kind: task or pipeline")
    parser.add_argument("--description", default="")
    parser.add_argument("--tag", action="append", default=[])
    parser.add_argument("--owner", required=True, help="GitHub repository owner")
    parser.add_argument("--repo", required=True, help="GitHub repository name")
    parser.add_argument("--path", required=True, help="File path inside the repository")
    parser.add_argument("--user", type=int, required=True, help="Uploader user id")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )

    resource_service = ResourceService(ResourceRepo(ctx.paths.db_path), readme_dir=ctx.paths.readme_dir)
    result = UploadService(resource_service).new_upload(
        name=args.name,
        description=args.description,
        type=args.type,
        tags=args.tag,
        github=GithubPointer(owner=args.owner, repository=args.repo, path=args.path),
        user_id=args.user,
    )

    ctx.console.print(f"[green]Uploaded[/green] {result.type} {result.name!r} as resource {result.resource_id}")
    if result.tags:
        ctx.console.print(f"Tags: {', '.join(result.tags)}")
    return 0
