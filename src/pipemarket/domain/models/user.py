from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class GithubUser:
    username: str
    user_id: int


@dataclass(slots=True)
class UserCredential:
    id: int
    username: str
    github_token: str | None
    session_token: str | None
    created_at: str
    updated_at: str
