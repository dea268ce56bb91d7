from __future__ import annotations

import argparse

from pipemarket.application.services.project_service import ProjectService
from pipemarket.application.services.rating_service import RatingService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError
from pipemarket.infrastructure.db.repos.rating_repo import RatingRepo


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("rate", help="Cast or revise a star rating")
    parser.add_argument("user_id", type=int)
    parser.add_argument("resource_id", type=int)
    parser.add_argument("stars", type=int)
    parser.add_argument(
        "--prev",
        type=int,
        default=None,
        help="Previously observed rating; revises instead of adding when given",
    )
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )

    service = RatingService(RatingRepo(ctx.paths.db_path))
    if args.prev is None:
        details = service.add_rating(args.user_id, args.resource_id, args.stars)
    else:
        details = service.update_rating(args.user_id, args.resource_id, args.stars, args.prev)

    ctx.console.print(
        f"[green]Resource {details.resource_id}[/green] "
        f"mean {details.rating_mean:.2f} from {details.rating_count} rating(s)"
    )
    return 0
