from __future__ import annotations

import argparse
import logging

import uvicorn

from pipemarket.cli.context import CLIContext
from pipemarket.web.app import create_app

logger = logging.getLogger(__name__)


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("web", help="Serve the marketplace HTTP API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="info")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    app = create_app(ctx.paths)
    logger.info("Serving %s on http://%s:%s", ctx.paths.data_dir, args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    return 0
