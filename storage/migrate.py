"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS assessments (
  test_id TEXT PRIMARY KEY,
  created_at TEXT NOT NULL,
  title TEXT NOT NULL,
  duration INTEGER NOT NULL,
  batches TEXT NOT NULL,
  questions TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS test_responses (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  session_id TEXT NOT NULL UNIQUE,
  submitted_at TEXT NOT NULL,
  test_id TEXT NOT NULL,
  test_title TEXT NOT NULL,
  learner_name TEXT NOT NULL,
  learner_email TEXT NOT NULL,
  batch TEXT NOT NULL,
  answers TEXT NOT NULL,
  score INTEGER NOT NULL,
  total_questions INTEGER NOT NULL,
  time_taken INTEGER NOT NULL,
  violations TEXT NOT NULL,
  camera_healthy INTEGER NOT NULL,
  proctoring_granted INTEGER NOT NULL,
  submit_trigger TEXT NOT NULL
);
""",
    """
CREATE INDEX IF NOT EXISTS idx_test_responses_test
  ON test_responses (test_id, batch);
""",
]


def migrate(db_path: str = "data/assessments.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    migrate()
