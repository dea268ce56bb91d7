from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich.console import Console

from pipemarket.cli.commands import (
    doctor_cmd,
    init_cmd,
    rate_cmd,
    resources_cmd,
    tags_cmd,
    upload_cmd,
    users_cmd,
    web_cmd,
)
from pipemarket.cli.context import CLIContext
from pipemarket.core.config import load_paths
from pipemarket.core.errors import MarketError
from pipemarket.core.logging import configure_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipemarket",
        description="Pipelines Marketplace CLI",
    )
    parser.add_argument(
        "--project-root",
        type=Path,
        default=Path.cwd(),
        help="Project root to use for .pipemarket data (default: current working directory)",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)

    subparsers = parser.add_subparsers(dest="command", required=True)
    init_cmd.register(subparsers)
    resources_cmd.register(subparsers)
    tags_cmd.register(subparsers)
    upload_cmd.register(subparsers)
    rate_cmd.register(subparsers)
    users_cmd.register(subparsers)
    doctor_cmd.register(subparsers)
    web_cmd.register(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    paths = load_paths(args.project_root)
    ctx = CLIContext(paths=paths, console=console)

    handler = getattr(args, "handler", None)
    if handler is None:
        parser.print_help()
        return 2

    try:
        return handler(args, ctx)
    except MarketError as exc:
        logger.error(str(exc))
        return 1
