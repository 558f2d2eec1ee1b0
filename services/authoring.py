"""Test authoring: validate definitions, store them and build share links."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from config.settings import settings
from exam_session import Assessment, AssessmentNotFound, QuestionNotFound
from observability import log_event
from storage.assessments import fetch_assessment, insert_assessment, list_assessments, update_questions


def share_link(test_id: str, base: Optional[str] = None) -> str:
    """Return the learner-facing URL for ``test_id``."""

    base = (base if base is not None else settings.TEST_LINK_BASE).rstrip("/")
    return f"{base}/test/{test_id}"


def create_assessment(
    *,
    title: str,
    duration: int,
    questions: List[Dict[str, Any]],
    batches: List[str],
) -> Assessment:
    """Validate and persist a new test definition.

    Raises:
        pydantic.ValidationError: If the definition is incomplete, a choice
            question lacks options or a valid answer key, or batches are empty.
    """

    assessment = Assessment(title=title, duration=duration, questions=questions, batches=batches)
    insert_assessment(assessment)
    log_event(
        "assessment_created",
        "-",
        test_id=assessment.test_id,
        count=len(assessment.questions),
        detail=",".join(assessment.batches),
    )
    return assessment


def list_test_summaries() -> List[Dict[str, Any]]:
    """Dashboard rows for every stored test, newest first."""

    return [
        {
            "test_id": assessment.test_id,
            "title": assessment.title,
            "duration": assessment.duration,
            "question_count": len(assessment.questions),
            "batches": assessment.batches,
            "created_at": assessment.created_at.isoformat(),
            "link": share_link(assessment.test_id),
        }
        for assessment in list_assessments()
    ]


def _load(test_id: str) -> Assessment:
    assessment = fetch_assessment(test_id)
    if assessment is None:
        raise AssessmentNotFound(test_id)
    return assessment


def _replace_questions(assessment: Assessment, questions: List[Dict[str, Any]]) -> Assessment:
    # Rebuild through the model so the edited test obeys the same rules as a new one.
    data = assessment.model_dump()
    data["questions"] = questions
    updated = Assessment(**data)
    if not update_questions(updated):
        raise AssessmentNotFound(assessment.test_id)
    return updated


def add_question(test_id: str, question: Dict[str, Any]) -> Assessment:
    """Append ``question`` to a stored test and return the updated test.

    Raises:
        AssessmentNotFound: If ``test_id`` is unknown.
        pydantic.ValidationError: If the question is invalid.
    """

    assessment = _load(test_id)
    questions = [q.model_dump() for q in assessment.questions] + [question]
    updated = _replace_questions(assessment, questions)
    log_event("question_added", "-", test_id=test_id, count=len(updated.questions))
    return updated


def delete_question(test_id: str, index: int) -> Assessment:
    """Remove the question at ``index`` from a stored test.

    Raises:
        AssessmentNotFound: If ``test_id`` is unknown.
        QuestionNotFound: If ``index`` is outside the question list.
        pydantic.ValidationError: If the test would be left without questions.
    """

    assessment = _load(test_id)
    if not 0 <= index < len(assessment.questions):
        raise QuestionNotFound(test_id, index)
    questions = [q.model_dump() for i, q in enumerate(assessment.questions) if i != index]
    updated = _replace_questions(assessment, questions)
    log_event("question_deleted", "-", test_id=test_id, count=len(updated.questions))
    return updated
