from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from pathlib import Path

from pipemarket.domain.models.rating import RatingDetails
from pipemarket.infrastructure.db.sqlite import get_connection, immediate_transaction


@dataclass(slots=True, frozen=True)
class RatingWrite:
    """Outcome of a guarded rating write.

    ``status`` is one of ``applied``, ``resource_missing``, ``already_rated``
    or ``stale``. ``stored_stars`` is the per-user value seen inside the
    transaction, before any change.
    """

    status: str
    stored_stars: int | None
    details: RatingDetails | None


class RatingRepo:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def get_user_stars(self, user_id: int, resource_id: int) -> int | None:
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                "SELECT stars FROM user_ratings WHERE user_id = ? AND resource_id = ?",
                (user_id, resource_id),
            ).fetchone()
        return int(row["stars"]) if row else None

    def get_details(self, resource_id: int) -> RatingDetails | None:
        with get_connection(self.db_path) as conn:
            return self._read_details(conn, resource_id)

    def insert_first(self, user_id: int, resource_id: int, stars: int, rated_at: str) -> RatingWrite:
        with immediate_transaction(self.db_path) as conn:
            if self._read_details(conn, resource_id) is None:
                return RatingWrite(status="resource_missing", stored_stars=None, details=None)

            stored = self._read_stars(conn, user_id, resource_id)
            if stored is not None:
                return RatingWrite(status="already_rated", stored_stars=stored, details=None)

            conn.execute(
                """
                INSERT INTO user_ratings (user_id, resource_id, stars, rated_at)
                VALUES (?, ?, ?, ?)
                """,
                (user_id, resource_id, stars, rated_at),
            )
            conn.execute(
                """
                UPDATE resources
                SET rating_count = rating_count + 1, rating_sum = rating_sum + ?
                WHERE id = ?
                """,
                (stars, resource_id),
            )
            return RatingWrite(
                status="applied",
                stored_stars=None,
                details=self._read_details(conn, resource_id),
            )

    def replace(
        self,
        user_id: int,
        resource_id: int,
        stars: int,
        prev_stars: int,
        rated_at: str,
    ) -> RatingWrite:
        with immediate_transaction(self.db_path) as conn:
            if self._read_details(conn, resource_id) is None:
                return RatingWrite(status="resource_missing", stored_stars=None, details=None)

            stored = self._read_stars(conn, user_id, resource_id)
            if stored is None or stored != prev_stars:
                return RatingWrite(status="stale", stored_stars=stored, details=None)

            conn.execute(
                """
                UPDATE user_ratings
                SET stars = ?, rated_at = ?
                WHERE user_id = ? AND resource_id = ?
                """,
                (stars, rated_at, user_id, resource_id),
            )
            conn.execute(
                "UPDATE resources SET rating_sum = rating_sum + ? WHERE id = ?",
                (stars - stored, resource_id),
            )
            return RatingWrite(
                status="applied",
                stored_stars=stored,
                details=self._read_details(conn, resource_id),
            )

    def sum_active_stars(self, resource_id: int) -> tuple[int, int]:
        """Recompute (count, sum) from the per-user rows."""
        with get_connection(self.db_path) as conn:
            row = conn.execute(
                """
                SELECT COUNT(*) AS rating_count, COALESCE(SUM(stars), 0) AS rating_sum
                FROM user_ratings
                WHERE resource_id = ?
                """,
                (resource_id,),
            ).fetchone()
        return int(row["rating_count"]), int(row["rating_sum"])

    @staticmethod
    def _read_stars(conn: sqlite3.Connection, user_id: int, resource_id: int) -> int | None:
        row = conn.execute(
            "SELECT stars FROM user_ratings WHERE user_id = ? AND resource_id = ?",
            (user_id, resource_id),
        ).fetchone()
        return int(row["stars"]) if row else None

    @staticmethod
    def _read_details(conn: sqlite3.Connection, resource_id: int) -> RatingDetails | None:
        row = conn.execute(
            "SELECT rating_count, rating_sum FROM resources WHERE id = ?",
            (resource_id,),
        ).fetchone()
        if row is None:
            return None
        return RatingDetails.from_totals(
            resource_id=resource_id,
            rating_count=int(row["rating_count"]),
            rating_sum=int(row["rating_sum"]),
        )
