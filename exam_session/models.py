"""Domain models for test definitions, learners and submission records."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Literal, Optional, Sequence, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .errors import ValidationFailed

QuestionKind = Literal["mcq", "multiple", "short", "numeric", "essay"]
WatcherClass = Literal["fullscreen", "camera", "escape_key"]
Trigger = Literal["manual", "timer", "fullscreen", "escape_key"]
Phase = Literal[
    "awaiting_consent",
    "preparing",
    "in_progress",
    "submitting",
    "submitted",
    "failed",
    "abandoned",
]
SubmissionOutcome = Literal["not_submitted", "submitted", "failed"]
NoticeKind = Literal["validation", "capability", "violation", "camera", "submission"]

CHOICE_KINDS = ("mcq", "multiple")
TERMINAL_PHASES = ("submitted", "failed", "abandoned")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _clean_strings(values: Any) -> Any:
    if isinstance(values, (set, frozenset)):
        values = sorted(values)
    if not isinstance(values, (list, tuple)):
        return values
    cleaned = [value.strip() if isinstance(value, str) else value for value in values]
    return [value for value in cleaned if value != ""]


class Question(BaseModel):
    """One question of a test; choice kinds carry options and an answer key."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(min_length=1)
    kind: QuestionKind = "mcq"
    options: List[str] = Field(default_factory=list)
    correct_answer: Union[str, List[str], None] = None

    @model_validator(mode="before")
    @classmethod
    def _normalise(cls, data: Any) -> Any:
        # Authoring input arrives with stray whitespace and blank option rows.
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("text"), str):
            data["text"] = data["text"].strip()
        if "options" in data:
            data["options"] = _clean_strings(data["options"])
        answer = data.get("correct_answer")
        if isinstance(answer, str):
            data["correct_answer"] = answer.strip() or None
        elif answer is not None:
            data["correct_answer"] = _clean_strings(answer)
        return data

    @model_validator(mode="after")
    def _check_answer_key(self) -> "Question":
        if self.kind not in CHOICE_KINDS:
            return self
        if len(self.options) < 2:
            raise ValueError("choice questions need at least two options")
        if self.kind == "mcq":
            if not isinstance(self.correct_answer, str) or self.correct_answer not in self.options:
                raise ValueError("correct answer must be one of the options")
            return self
        if not isinstance(self.correct_answer, list) or not self.correct_answer:
            raise ValueError("select at least one correct option")
        missing = [answer for answer in self.correct_answer if answer not in self.options]
        if missing:
            raise ValueError(f"correct answers not among options: {missing}")
        return self

    @property
    def auto_scored(self) -> bool:
        return self.kind in CHOICE_KINDS

    def correct_options(self) -> FrozenSet[str]:
        if isinstance(self.correct_answer, list):
            return frozenset(self.correct_answer)
        return frozenset()


class Assessment(BaseModel):
    """Immutable test definition shared with every learner session."""

    model_config = ConfigDict(frozen=True)

    test_id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(min_length=1)
    duration: int = Field(ge=1, description="Duration in whole minutes")
    questions: List[Question] = Field(min_length=1)
    batches: List[str] = Field(min_length=1)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("batches")
    @classmethod
    def _check_batches(cls, value: List[str]) -> List[str]:
        cleaned = [batch.strip() for batch in value]
        if any(not batch for batch in cleaned):
            raise ValueError("batch names must be non-empty")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError("batch names must be unique")
        return cleaned

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60

    def learner_view(self) -> Dict[str, Any]:
        """Return the test as shown to learners, without the answer keys."""

        return self.model_dump(
            mode="json",
            exclude={"questions": {"__all__": {"correct_answer"}}},
        )


class LearnerIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    batch: str


def validate_identity(name: str, email: str, batch: str, batches: Sequence[str]) -> LearnerIdentity:
    """Check the consent form and return the learner identity.

    Raises:
        ValidationFailed: If a field is missing, the email is malformed or the
            batch is not one the test was shared with.
    """

    name = (name or "").strip()
    email = (email or "").strip()
    batch = batch or ""
    if not name or not email or not batch:
        raise ValidationFailed("Please fill all required fields")
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed("Please enter a valid email address")
    if batch not in batches:
        raise ValidationFailed("Please select one of the listed batches")
    return LearnerIdentity(name=name, email=email, batch=batch)


class Notice(BaseModel):
    """Message surfaced to the learner by the session controller."""

    model_config = ConfigDict(frozen=True)

    kind: NoticeKind
    text: str
    blocking: bool = False
    watcher: Optional[WatcherClass] = None


class AnswerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: int
    question_text: str
    question_type: QuestionKind
    response: Any = None
    correct_answer: Union[str, List[str], None] = None


class SubmissionRecord(BaseModel):
    """Snapshot written once to the submission gateway."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    test_id: str
    test_title: str
    learner: LearnerIdentity
    answers: List[AnswerRecord]
    score: int = Field(ge=0)
    total_questions: int
    time_taken: int = Field(ge=0, description="Elapsed seconds")
    violations: Dict[str, int]
    camera_healthy: bool
    proctoring_granted: bool
    trigger: Trigger
    submitted_at: datetime = Field(default_factory=_utcnow)
