"""Proctored test-taking session core."""
from .answers import AnswerStore
from .controller import SessionController
from .environment import Environment, KeyPress
from .errors import (
    AssessmentNotFound,
    CapabilityDenied,
    QuestionNotFound,
    SessionError,
    SubmissionFailed,
    ValidationFailed,
)
from .gateway import AssessmentRepository, SubmissionGateway
from .models import (
    AnswerRecord,
    Assessment,
    LearnerIdentity,
    Notice,
    Question,
    SubmissionRecord,
    validate_identity,
)
from .monitor import IntegrityMonitor
from .scorer import is_answer_correct, max_score, score
from .state import SessionState
from .timer import CountdownTimer, format_clock

__all__ = [
    "AnswerRecord",
    "AnswerStore",
    "Assessment",
    "AssessmentNotFound",
    "AssessmentRepository",
    "CapabilityDenied",
    "CountdownTimer",
    "Environment",
    "IntegrityMonitor",
    "KeyPress",
    "LearnerIdentity",
    "Notice",
    "Question",
    "QuestionNotFound",
    "SessionController",
    "SessionError",
    "SessionState",
    "SubmissionFailed",
    "SubmissionGateway",
    "SubmissionRecord",
    "ValidationFailed",
    "format_clock",
    "is_answer_correct",
    "max_score",
    "score",
    "validate_identity",
]
