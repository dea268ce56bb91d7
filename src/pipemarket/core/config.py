from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AppPaths:
    project_root: Path
    data_dir: Path
    db_path: Path
    readme_dir: Path
    tekton_dir: Path
    catalog_dir: Path
    archive_dir: Path


@dataclass(frozen=True)
class GithubSettings:
    client_id: str | None
    client_secret: str | None
    api_token: str | None
    api_base_url: str = "https://api.github.com"
    oauth_base_url: str = "https://github.com"
    timeout_seconds: float = 10.0


DEFAULT_DATA_DIRNAME = ".pipemarket"
DEFAULT_GITHUB_TIMEOUT_SECONDS = 10.0


def load_paths(project_root: Path | None = None) -> AppPaths:
    root = (project_root or Path.cwd()).expanduser().resolve()

    home_raw = os.getenv("PIPEMARKET_HOME")
    if home_raw:
        data_dir = Path(home_raw).expanduser().resolve()
    else:
        data_dir = root / DEFAULT_DATA_DIRNAME

    return AppPaths(
        project_root=root,
        data_dir=data_dir,
        db_path=data_dir / "pipemarket.db",
        readme_dir=data_dir / "readme",
        tekton_dir=data_dir / "tekton",
        catalog_dir=data_dir / "catalog",
        archive_dir=data_dir / "archive",
    )


def load_github_settings() -> GithubSettings:
    raw_timeout = os.getenv("PIPEMARKET_GITHUB_TIMEOUT_SECONDS")
    timeout = DEFAULT_GITHUB_TIMEOUT_SECONDS
    if raw_timeout:
        try:
            timeout = float(raw_timeout)
        except ValueError:
            timeout = DEFAULT_GITHUB_TIMEOUT_SECONDS
        if timeout <= 0:
            timeout = DEFAULT_GITHUB_TIMEOUT_SECONDS

    return GithubSettings(
        client_id=os.getenv("GITHUB_CLIENT_ID") or None,
        client_secret=os.getenv("GITHUB_CLIENT_SECRET") or None,
        api_token=os.getenv("GITHUB_TOKEN") or None,
        api_base_url=os.getenv("PIPEMARKET_GITHUB_API_URL", "https://api.github.com").rstrip("/"),
        oauth_base_url=os.getenv("PIPEMARKET_GITHUB_OAUTH_URL", "https://github.com").rstrip("/"),
        timeout_seconds=timeout,
    )
