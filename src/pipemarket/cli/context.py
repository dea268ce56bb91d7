from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console

from pipemarket.core.config import AppPaths


@dataclass(slots=True)
class CLIContext:
    paths: AppPaths
    console: Console
