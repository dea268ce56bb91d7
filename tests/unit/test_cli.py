from pathlib import Path

import pytest

from pipemarket.cli.main import main
from pipemarket.infrastructure.db.repos.user_repo import UserRepo


@pytest.fixture(autouse=True)
def _isolated_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("PIPEMARKET_HOME", raising=False)


def test_cli_upload_rate_and_list(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = ["--project-root", str(tmp_path)]

    assert main([*root, "resources"]) == 1
    assert main([*root, "init"]) == 0
    assert (tmp_path / ".pipemarket" / "pipemarket.db").exists()

    assert (
        main(
            [
                *root,
                "upload",
                "buildah",
                "--tag",
                "image",
                "--owner",
                "tektoncd",
                "--repo",
                "catalog",
                "--path",
                "task/buildah.yaml",
                "--user",
                "4",
            ]
        )
        == 0
    )
    assert main([*root, "rate", "9", "1", "4"]) == 0
    assert main([*root, "rate", "9", "1", "2", "--prev", "4"]) == 0
    assert main([*root, "rate", "9", "1", "2", "--prev", "4"]) == 1

    capsys.readouterr()
    assert main([*root, "resources", "--tag", "image"]) == 0
    out = capsys.readouterr().out
    assert "buildah" in out
    assert "2.00" in out

    assert main([*root, "tags"]) == 0
    assert "image" in capsys.readouterr().out

    assert main([*root, "doctor"]) == 0


def test_cli_users_lists_signed_in_users_without_tokens(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    root = ["--project-root", str(tmp_path)]
    assert main([*root, "users"]) == 1
    assert main([*root, "init"]) == 0

    capsys.readouterr()
    assert main([*root, "users"]) == 0
    assert "No users yet" in capsys.readouterr().out

    UserRepo(tmp_path / ".pipemarket" / "pipemarket.db").upsert(
        user_id=583231,
        username="octocat",
        github_token="gho_secret",
        session_token="session_secret",
        now="2026-01-01T00:00:00Z",
    )
    assert main([*root, "users"]) == 0
    out = capsys.readouterr().out
    assert "octocat" in out
    assert "583231" in out
    assert "gho_secret" not in out
    assert "session_secret" not in out
