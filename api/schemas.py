"""Pydantic schemas for the test authoring and results API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from exam_session.models import QuestionKind


class QuestionIn(BaseModel):
    text: str
    kind: QuestionKind = "mcq"
    options: List[str] = Field(default_factory=list)
    correct_answer: Union[str, List[str], None] = None


class CreateTestReq(BaseModel):
    title: str
    duration: int = Field(description="Duration in whole minutes")
    questions: List[QuestionIn]
    batches: List[str]


class CreateTestResp(BaseModel):
    test_id: str
    link: str


class LearnerQuestion(BaseModel):
    text: str
    kind: QuestionKind
    options: List[str] = Field(default_factory=list)


class LearnerTest(BaseModel):
    """Test as served to learners; answer keys are never included."""

    test_id: str
    title: str
    duration: int
    batches: List[str]
    questions: List[LearnerQuestion]


class ResponseRow(BaseModel):
    session_id: str
    submitted_at: str
    learner_name: str
    learner_email: str
    batch: str
    answers: List[Dict[str, Any]]
    score: int
    total_questions: int
    time_taken: int
    violations: Dict[str, int]
    camera_healthy: bool
    proctoring_granted: bool
    trigger: str


class ResponsesResp(BaseModel):
    test_id: str
    batch: Optional[str] = None
    responses: List[ResponseRow] = Field(default_factory=list)


class AssessmentSummary(BaseModel):
    test_id: str
    title: str
    duration: int
    question_count: int
    batches: List[str]
    created_at: str
    link: str
