"""FastAPI routes for test authoring and response review."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import ValidationError

from api.schemas import CreateTestReq, CreateTestResp, LearnerTest, QuestionIn, ResponsesResp, AssessmentSummary
from exam_session import Assessment, AssessmentNotFound, QuestionNotFound
from services.authoring import (
    add_question,
    create_assessment,
    delete_question,
    list_test_summaries,
    share_link,
)
from services.sessions import SqliteAssessmentRepository
from storage.responses import list_test_responses


router = APIRouter(prefix="/api/tests")


def _validation_detail(exc: ValidationError) -> List[Dict[str, Any]]:
    return [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]


def _load(test_id: str) -> Assessment:
    assessment = SqliteAssessmentRepository().fetch(test_id)
    if assessment is None:
        raise HTTPException(status_code=404, detail="test not found")
    return assessment


@router.post("", response_model=CreateTestResp, status_code=201)
def create_test(req: CreateTestReq) -> CreateTestResp:
    try:
        assessment = create_assessment(
            title=req.title,
            duration=req.duration,
            questions=[question.model_dump() for question in req.questions],
            batches=req.batches,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
    return CreateTestResp(test_id=assessment.test_id, link=share_link(assessment.test_id))


@router.get("/{test_id}", response_model=LearnerTest)
def get_test(test_id: str) -> Dict[str, Any]:
    return _load(test_id).learner_view()


@router.get("/{test_id}/responses", response_model=ResponsesResp)
def get_responses(test_id: str, batch: Optional[str] = None) -> ResponsesResp:
    _load(test_id)
    rows = list_test_responses(test_id, batch=batch)
    return ResponsesResp(test_id=test_id, batch=batch, responses=rows)


@router.get("", response_model=List[AssessmentSummary])
def list_tests() -> List[Dict[str, Any]]:
    return list_test_summaries()


def _summary(assessment: Assessment) -> AssessmentSummary:
    return AssessmentSummary(
        test_id=assessment.test_id,
        title=assessment.title,
        duration=assessment.duration,
        question_count=len(assessment.questions),
        batches=assessment.batches,
        created_at=assessment.created_at.isoformat(),
        link=share_link(assessment.test_id),
    )


@router.post("/{test_id}/questions", response_model=AssessmentSummary, status_code=201)
def append_question(test_id: str, req: QuestionIn) -> AssessmentSummary:
    try:
        updated = add_question(test_id, req.model_dump())
    except AssessmentNotFound as exc:
        raise HTTPException(status_code=404, detail="test not found") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
    return _summary(updated)


@router.delete("/{test_id}/questions/{index}", response_model=AssessmentSummary)
def remove_question(test_id: str, index: int) -> AssessmentSummary:
    try:
        updated = delete_question(test_id, index)
    except AssessmentNotFound as exc:
        raise HTTPException(status_code=404, detail="test not found") from exc
    except QuestionNotFound as exc:
        raise HTTPException(status_code=404, detail="question not found") from exc
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_validation_detail(exc)) from exc
    return _summary(updated)
