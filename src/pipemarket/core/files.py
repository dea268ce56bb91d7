from __future__ import annotations

import os
import secrets
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def temp_path_for(dst: Path) -> Path:
    # Unique per call so concurrent writers of the same target never share a temp file.
    return dst.parent / f".{dst.name}.{secrets.token_hex(8)}.tmp"


def replace_atomic(temp_path: Path, dst: Path) -> None:
    # os.replace is atomic on the same filesystem; readers never see a partial file.
    os.replace(temp_path, dst)
