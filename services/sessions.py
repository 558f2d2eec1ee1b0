"""SQLite-backed collaborators for learner sessions."""
from __future__ import annotations

import asyncio
import sqlite3
from typing import Optional

from config.settings import Settings
from exam_session import (
    Assessment,
    AssessmentNotFound,
    Environment,
    SessionController,
    SubmissionFailed,
    SubmissionRecord,
)
from observability import log_event
from storage.assessments import fetch_assessment
from storage.responses import insert_test_response


class SqliteAssessmentRepository:
    """Read-only lookup of stored test definitions."""

    def fetch(self, test_id: str) -> Optional[Assessment]:
        return fetch_assessment(test_id)

    def get(self, test_id: str) -> Assessment:
        assessment = self.fetch(test_id)
        if assessment is None:
            raise AssessmentNotFound(test_id)
        return assessment


class SqliteSubmissionGateway:
    """Writes each submission record once to the ``test_responses`` table."""

    def _insert(self, record: SubmissionRecord) -> int:
        return insert_test_response(
            session_id=record.session_id,
            test_id=record.test_id,
            test_title=record.test_title,
            learner_name=record.learner.name,
            learner_email=record.learner.email,
            batch=record.learner.batch,
            answers=[answer.model_dump(mode="json") for answer in record.answers],
            score=record.score,
            total_questions=record.total_questions,
            time_taken=record.time_taken,
            violations=record.violations,
            camera_healthy=record.camera_healthy,
            proctoring_granted=record.proctoring_granted,
            trigger=record.trigger,
            submitted_at=record.submitted_at,
        )

    async def write(self, record: SubmissionRecord) -> None:
        try:
            row_id = await asyncio.to_thread(self._insert, record)
        except sqlite3.Error as exc:
            log_event("gateway_write_failed", record.session_id, detail=str(exc))
            raise SubmissionFailed(str(exc)) from exc
        log_event("gateway_write_ok", record.session_id, row_id=row_id, score=record.score)


def open_session(
    test_id: str,
    environment: Environment,
    *,
    repository: Optional[SqliteAssessmentRepository] = None,
    gateway: Optional[SqliteSubmissionGateway] = None,
    config: Optional[Settings] = None,
) -> SessionController:
    """Load ``test_id`` and build a controller waiting for learner consent."""

    repository = repository or SqliteAssessmentRepository()
    assessment = repository.get(test_id)
    controller = SessionController(
        assessment,
        gateway or SqliteSubmissionGateway(),
        environment,
        config=config,
    )
    log_event("session_opened", controller.session_id, test_id=test_id)
    return controller
