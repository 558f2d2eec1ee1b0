"""Persistence helpers for submitted test responses."""
from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from .sqlite import get_conn


class ResponsePayload(BaseModel):
    session_id: str
    test_id: str
    test_title: str
    learner_name: str
    learner_email: str
    batch: str
    answers: List[Dict[str, Any]]
    score: int = Field(ge=0)
    total_questions: int = Field(ge=0)
    time_taken: int = Field(ge=0)
    violations: Dict[str, int] = Field(default_factory=dict)
    camera_healthy: bool = True
    proctoring_granted: bool = False
    trigger: str
    submitted_at: Optional[dt.datetime] = None


_COLUMNS = (
    "session_id, submitted_at, test_id, test_title, learner_name, learner_email, batch, "
    "answers, score, total_questions, time_taken, violations, camera_healthy, "
    "proctoring_granted, submit_trigger"
)


def insert_test_response(**data: Any) -> int:
    """Insert one submitted response and return its primary key.

    ``session_id`` is unique, so a second write for the same attempt raises
    :class:`sqlite3.IntegrityError` instead of duplicating the row.
    """

    payload = ResponsePayload(**data)
    submitted_at = payload.submitted_at or dt.datetime.now(dt.timezone.utc)
    with get_conn() as conn:
        cur = conn.cursor()
        cur.execute(
            f"INSERT INTO test_responses ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                payload.session_id,
                submitted_at.isoformat(),
                payload.test_id,
                payload.test_title,
                payload.learner_name,
                payload.learner_email,
                payload.batch,
                json.dumps(payload.answers),
                payload.score,
                payload.total_questions,
                payload.time_taken,
                json.dumps(payload.violations),
                int(payload.camera_healthy),
                int(payload.proctoring_granted),
                payload.trigger,
            ),
        )
        return int(cur.lastrowid)


def _row_to_dict(row: Any) -> Dict[str, Any]:
    return {
        "session_id": row["session_id"],
        "submitted_at": row["submitted_at"],
        "test_id": row["test_id"],
        "test_title": row["test_title"],
        "learner_name": row["learner_name"],
        "learner_email": row["learner_email"],
        "batch": row["batch"],
        "answers": json.loads(row["answers"]),
        "score": row["score"],
        "total_questions": row["total_questions"],
        "time_taken": row["time_taken"],
        "violations": json.loads(row["violations"]),
        "camera_healthy": bool(row["camera_healthy"]),
        "proctoring_granted": bool(row["proctoring_granted"]),
        "trigger": row["submit_trigger"],
    }


def list_test_responses(test_id: str, batch: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return responses for ``test_id`` in submission order, optionally for one batch."""

    query = f"SELECT {_COLUMNS} FROM test_responses WHERE test_id = ?"
    params: List[Any] = [test_id]
    if batch is not None:
        query += " AND batch = ?"
        params.append(batch)
    query += " ORDER BY id"
    with get_conn() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_dict(row) for row in rows]


def recent_test_responses(limit: int = 20) -> List[Dict[str, Any]]:
    with get_conn() as conn:
        rows = conn.execute(
            f"SELECT {_COLUMNS} FROM test_responses ORDER BY id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [_row_to_dict(row) for row in rows]
