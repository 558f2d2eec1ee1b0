"""Persistence helpers for test definitions."""
from __future__ import annotations

import json
from typing import Any, List, Optional, Sequence

from exam_session.models import Assessment, Question

from .sqlite import get_conn

_SELECT = "SELECT test_id, created_at, title, duration, batches, questions FROM assessments"


def _dump_questions(questions: Sequence[Question]) -> str:
    return json.dumps([question.model_dump(mode="json") for question in questions])


def _row_to_assessment(row: Any) -> Assessment:
    return Assessment(
        test_id=row["test_id"],
        created_at=row["created_at"],
        title=row["title"],
        duration=row["duration"],
        batches=json.loads(row["batches"]),
        questions=json.loads(row["questions"]),
    )


def insert_assessment(assessment: Assessment) -> str:
    """Store ``assessment`` and return its identifier."""

    with get_conn() as conn:
        conn.execute(
            """INSERT INTO assessments
               (test_id, created_at, title, duration, batches, questions)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                assessment.test_id,
                assessment.created_at.isoformat(),
                assessment.title,
                assessment.duration,
                json.dumps(assessment.batches),
                _dump_questions(assessment.questions),
            ),
        )
    return assessment.test_id


def fetch_assessment(test_id: str) -> Optional[Assessment]:
    with get_conn() as conn:
        row = conn.execute(f"{_SELECT} WHERE test_id = ?", (test_id,)).fetchone()
    if row is None:
        return None
    return _row_to_assessment(row)


def list_assessments() -> List[Assessment]:
    """Return every stored test, newest first."""

    with get_conn() as conn:
        rows = conn.execute(f"{_SELECT} ORDER BY created_at DESC").fetchall()
    return [_row_to_assessment(row) for row in rows]


def update_questions(assessment: Assessment) -> bool:
    """Overwrite the stored question list of ``assessment``; False if it is gone."""

    with get_conn() as conn:
        cur = conn.execute(
            "UPDATE assessments SET questions = ? WHERE test_id = ?",
            (_dump_questions(assessment.questions), assessment.test_id),
        )
        return cur.rowcount == 1
