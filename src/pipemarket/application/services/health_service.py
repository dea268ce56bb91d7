from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pipemarket.infrastructure.db.sqlite import get_connection


@dataclass(slots=True)
class DoctorIssue:
    check: str
    level: str
    message: str


@dataclass(slots=True)
class DoctorReport:
    ok: bool
    checks_run: int
    issues: list[DoctorIssue]
    db_runtime: dict[str, object]


class HealthService:
    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path

    def run_doctor(self) -> DoctorReport:
        issues: list[DoctorIssue] = []
        checks_run = 0
        db_runtime: dict[str, object] = {}

        # Check 1: database runtime pragmas support concurrent access.
        checks_run += 1
        with get_connection(self.db_path) as conn:
            journal_mode = str(conn.execute("PRAGMA journal_mode;").fetchone()[0]).lower()
            busy_timeout_ms = int(conn.execute("PRAGMA busy_timeout;").fetchone()[0])
            foreign_keys = int(conn.execute("PRAGMA foreign_keys;").fetchone()[0])

        db_runtime = {
            "journal_mode": journal_mode,
            "busy_timeout_ms": busy_timeout_ms,
            "foreign_keys": bool(foreign_keys),
        }

        if journal_mode != "wal":
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="error",
                    message=f"SQLite journal_mode is '{journal_mode}', expected 'wal' for concurrent access.",
                )
            )
        if foreign_keys != 1:
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="error",
                    message="SQLite foreign_keys pragma is disabled.",
                )
            )
        if busy_timeout_ms < 1_000:
            issues.append(
                DoctorIssue(
                    check="db_runtime",
                    level="warning",
                    message=f"SQLite busy_timeout is low ({busy_timeout_ms}ms); consider >= 1000ms.",
                )
            )

        # Check 2: stored aggregates match the per-user votes.
        checks_run += 1
        with get_connection(self.db_path) as conn:
            drift_rows = conn.execute(
                """
                SELECT
                    r.id,
                    r.rating_count,
                    r.rating_sum,
                    COUNT(u.stars) AS actual_count,
                    COALESCE(SUM(u.stars), 0) AS actual_sum
                FROM resources r
                LEFT JOIN user_ratings u ON u.resource_id = r.id
                GROUP BY r.id
                HAVING r.rating_count != COUNT(u.stars) OR r.rating_sum != COALESCE(SUM(u.stars), 0)
                """
            ).fetchall()
        for row in drift_rows:
            issues.append(
                DoctorIssue(
                    check="rating_aggregates",
                    level="error",
                    message=(
                        f"Resource {row['id']} stores count={row['rating_count']} sum={row['rating_sum']} "
                        f"but votes give count={row['actual_count']} sum={row['actual_sum']}"
                    ),
                )
            )

        # Check 3: every resource has a GitHub source pointer.
        checks_run += 1
        with get_connection(self.db_path) as conn:
            orphan_rows = conn.execute(
                """
                SELECT r.id FROM resources r
                LEFT JOIN github_details g ON g.resource_id = r.id
                WHERE g.resource_id IS NULL
                """
            ).fetchall()
        for row in orphan_rows:
            issues.append(
                DoctorIssue(
                    check="github_details",
                    level="error",
                    message=f"Resource {row['id']} has no GitHub source pointer.",
                )
            )

        ok = not any(issue.level == "error" for issue in issues)
        return DoctorReport(ok=ok, checks_run=checks_run, issues=issues, db_runtime=db_runtime)
