from __future__ import annotations

from pathlib import Path

from pipemarket.domain.models.user import UserCredential
from pipemarket.infrastructure.db.sqlite import get_connection


class UserRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def upsert(
        self,
        user_id: int,
        username: str,
        github_token: str,
        session_token: str,
        now: str,
    ) -> None:
        with get_connection(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO user_credentials (
                    id,
                    username,
                    github_token,
                    session_token,
                    created_at,
                    updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    username = excluded.username,
                    github_token = excluded.github_token,
                    session_token = excluded.session_token,
                    updated_at = excluded.updated_at
                """,
                (user_id, username, github_token, session_token, now, now),
            )
            conn.commit()

    def list_all(self) -> list[UserCredential]:
        with get_connection(self.db_path) as conn:
            rows = conn.execute("SELECT * FROM user_credentials ORDER BY id").fetchall()
        return [self._to_model(row) for row in rows]

    @staticmethod
    def _to_model(row) -> UserCredential:
        return UserCredential(
            id=row["id"],
            username=row["username"],
            github_token=row["github_token"],
            session_token=row["session_token"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
