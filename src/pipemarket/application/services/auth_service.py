from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from pipemarket.core.ids import new_session_token
from pipemarket.core.time import now_utc_iso
from pipemarket.domain.models.user import GithubUser
from pipemarket.infrastructure.db.repos.user_repo import UserRepo

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def exchange_code(self, code: str) -> str: ...

    def lookup_user(self, access_token: str) -> GithubUser: ...


@dataclass(slots=True)
class LoginResult:
    user_id: int
    username: str
    session_token: str


class AuthService:
    def __init__(self, identity: IdentityProvider, user_repo: UserRepo) -> None:
        self.identity = identity
        self.user_repo = user_repo

    def login_with_github(self, code: str) -> LoginResult:
        # Both external calls complete before anything is written.
        access_token = self.identity.exchange_code(code)
        user = self.identity.lookup_user(access_token)

        session_token = new_session_token()
        self.user_repo.upsert(
            user_id=user.user_id,
            username=user.username,
            github_token=access_token,
            session_token=session_token,
            now=now_utc_iso(),
        )
        logger.info("GitHub user %s (%s) signed in", user.username, user.user_id)
        return LoginResult(user_id=user.user_id, username=user.username, session_token=session_token)
