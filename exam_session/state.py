"""Mutable session state owned by the session controller."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .answers import AnswerStore
from .models import LearnerIdentity, Notice, Phase, SubmissionOutcome, Trigger


def _zero_counters() -> Dict[str, int]:
    return {"fullscreen": 0, "camera": 0, "escape_key": 0}


class SessionState(BaseModel):
    """State of one learner attempt; written only by ``SessionController``."""

    session_id: str = Field(default_factory=lambda: uuid4().hex)
    test_id: str

    phase: Phase = "awaiting_consent"
    learner: Optional[LearnerIdentity] = None

    duration_seconds: int = 0
    remaining_seconds: int = 0

    answers: AnswerStore

    violations: Dict[str, int] = Field(default_factory=_zero_counters)
    camera_healthy: bool = True
    proctoring_granted: bool = False

    outcome: SubmissionOutcome = "not_submitted"
    trigger: Optional[Trigger] = None

    notices: List[Notice] = Field(default_factory=list)
    blocking_notice: Optional[Notice] = None

    events: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = {
        "arbitrary_types_allowed": True,
    }

    @property
    def elapsed_seconds(self) -> int:
        return max(0, self.duration_seconds - self.remaining_seconds)
