from __future__ import annotations

import argparse

from rich.table import Table

from pipemarket.application.services.health_service import HealthService
from pipemarket.application.services.project_service import ProjectService
from pipemarket.cli.context import CLIContext
from pipemarket.core.errors import ProjectNotInitializedError


def register(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    parser = subparsers.add_parser("doctor", help="Check database settings and rating aggregate consistency")
    parser.set_defaults(handler=run)


def run(args: argparse.Namespace, ctx: CLIContext) -> int:
    if not ProjectService(ctx.paths).is_initialized():
        raise ProjectNotInitializedError(
            f"Project is not initialized. Run 'pipemarket init' first in {ctx.paths.project_root}"
        )

    report = HealthService(db_path=ctx.paths.db_path).run_doctor()

    runtime = ", ".join(f"{key}={value}" for key, value in report.db_runtime.items())
    ctx.console.print(f"[bold]Database[/bold] {runtime}")

    if not report.issues:
        ctx.console.print(f"[green]PASS[/green] {report.checks_run} checks, no issues")
        return 0

    table = Table(title=f"Issues ({len(report.issues)})")
    table.add_column("Level")
    table.add_column("Check")
    table.add_column("Message", overflow="fold")
    for issue in report.issues:
        style = "red" if issue.level == "error" else "yellow"
        table.add_row(f"[{style}]{issue.level}[/{style}]", issue.check, issue.message)
    ctx.console.print(table)

    status = "[green]PASS[/green]" if report.ok else "[red]FAIL[/red]"
    ctx.console.print(f"{status} {report.checks_run} checks")
    return 0 if report.ok else 1
