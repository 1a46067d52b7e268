"""Database connection and schema for schedule history."""

import logging
import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from dotenv import load_dotenv

from .models import HOURS_PER_DAY, ScheduleResult

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "powerplan" / "schedules.db"

SCHEMA = """
-- One row per computed schedule
CREATE TABLE IF NOT EXISTS schedule_runs (
    id INTEGER PRIMARY KEY,
    created_at TEXT NOT NULL,
    source TEXT,
    max_power REAL NOT NULL,
    total_cost REAL NOT NULL,
    device_count INTEGER NOT NULL,
    placed_count INTEGER NOT NULL
);

-- Device ids occupying each hour (position keeps placement order)
CREATE TABLE IF NOT EXISTS schedule_placements (
    id INTEGER PRIMARY KEY,
    run_id INTEGER NOT NULL,
    hour INTEGER NOT NULL,
    position INTEGER NOT NULL,
    device_id TEXT NOT NULL,
    FOREIGN KEY (run_id) REFERENCES schedule_runs(id)
);

-- Every input device, placed or not
CREATE TABLE IF NOT EXISTS run_devices (
    id INTEGER PRIMARY KEY,
    run_id INTEGER NOT NULL,
    device_id TEXT NOT NULL,
    device_name TEXT NOT NULL,
    cost REAL,
    UNIQUE(run_id, device_id),
    FOREIGN KEY (run_id) REFERENCES schedule_runs(id)
);

-- Placement failures
CREATE TABLE IF NOT EXISTS schedule_errors (
    id INTEGER PRIMARY KEY,
    run_id INTEGER NOT NULL,
    message TEXT NOT NULL,
    FOREIGN KEY (run_id) REFERENCES schedule_runs(id)
);

CREATE INDEX IF NOT EXISTS idx_placements_run ON schedule_placements(run_id, hour);
CREATE INDEX IF NOT EXISTS idx_devices_run ON run_devices(run_id);
CREATE INDEX IF NOT EXISTS idx_errors_run ON schedule_errors(run_id);
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed.

    POWERPLAN_DB_PATH overrides the default location.
    """
    db_path = Path(os.environ.get("POWERPLAN_DB_PATH", DEFAULT_DB_PATH)).expanduser()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


def save_run(
    result: ScheduleResult,
    max_power: float,
    source: str | None = None,
    db_path: Path | None = None,
) -> int:
    """Save a computed schedule. Returns the new run id."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        cursor = conn.execute(
            """INSERT INTO schedule_runs
               (created_at, source, max_power, total_cost, device_count, placed_count)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                datetime.now().isoformat(timespec="seconds"),
                source,
                max_power,
                result.total_cost,
                len(result.devices),
                len(result.device_costs),
            ),
        )
        run_id = cursor.lastrowid

        for hour, device_ids in result.schedule.items():
            for position, device_id in enumerate(device_ids):
                conn.execute(
                    """INSERT INTO schedule_placements (run_id, hour, position, device_id)
                       VALUES (?, ?, ?, ?)""",
                    (run_id, hour, position, device_id),
                )

        for device_id, name in result.devices.items():
            conn.execute(
                "INSERT INTO run_devices (run_id, device_id, device_name, cost) VALUES (?, ?, ?, ?)",
                (run_id, device_id, name, result.device_costs.get(device_id)),
            )

        for message in result.errors:
            conn.execute(
                "INSERT INTO schedule_errors (run_id, message) VALUES (?, ?)",
                (run_id, message),
            )

        conn.commit()

    logger.info("Saved schedule run %d", run_id)
    return run_id


def list_runs(limit: int = 20, db_path: Path | None = None) -> list[dict]:
    """List the most recent schedule runs, newest first."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        rows = conn.execute(
            """SELECT r.id, r.created_at, r.source, r.max_power, r.total_cost,
                      r.device_count, r.placed_count,
                      (SELECT COUNT(*) FROM schedule_errors e WHERE e.run_id = r.id) as error_count
               FROM schedule_runs r
               ORDER BY r.id DESC
               LIMIT ?""",
            (limit,),
        ).fetchall()
        return [dict(row) for row in rows]


def get_run(run_id: int, db_path: Path | None = None) -> dict | None:
    """Load a saved run.

    Returns a dict with 'run' (summary row), 'result' (ScheduleResult) and
    'max_power', or None if the run doesn't exist.
    """
    init_db(db_path)
    with get_connection(db_path) as conn:
        run = conn.execute("SELECT * FROM schedule_runs WHERE id = ?", (run_id,)).fetchone()
        if not run:
            return None

        schedule: dict[int, list[str]] = {hour: [] for hour in range(HOURS_PER_DAY)}
        rows = conn.execute(
            "SELECT hour, device_id FROM schedule_placements WHERE run_id = ? ORDER BY hour, position",
            (run_id,),
        ).fetchall()
        for row in rows:
            schedule[row["hour"]].append(row["device_id"])

        device_rows = conn.execute(
            "SELECT device_id, device_name, cost FROM run_devices WHERE run_id = ? ORDER BY id",
            (run_id,),
        ).fetchall()

        errors = conn.execute(
            "SELECT message FROM schedule_errors WHERE run_id = ? ORDER BY id", (run_id,)
        ).fetchall()

    result = ScheduleResult(
        schedule=schedule,
        total_cost=run["total_cost"],
        device_costs={r["device_id"]: r["cost"] for r in device_rows if r["cost"] is not None},
        devices={r["device_id"]: r["device_name"] for r in device_rows},
        errors=[r["message"] for r in errors],
    )
    return {"run": dict(run), "result": result, "max_power": run["max_power"]}


def get_stats(db_path: Path | None = None) -> dict:
    """Get database statistics."""
    init_db(db_path)
    with get_connection(db_path) as conn:
        stats = {}

        row = conn.execute(
            "SELECT COUNT(*) as count, MIN(created_at) as earliest, MAX(created_at) as latest FROM schedule_runs"
        ).fetchone()
        stats["schedule_runs"] = {
            "count": row["count"],
            "earliest": row["earliest"],
            "latest": row["latest"],
        }

        row = conn.execute("SELECT COUNT(*) as count FROM schedule_placements").fetchone()
        stats["placements"] = {"count": row["count"]}

        row = conn.execute("SELECT COUNT(*) as count FROM schedule_errors").fetchone()
        stats["errors"] = {"count": row["count"]}

        return stats
