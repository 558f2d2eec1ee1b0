"""Exception types raised by the test-taking session core."""
from __future__ import annotations


class SessionError(Exception):
    """Base class for session-level failures."""


class ValidationFailed(SessionError):
    """Learner identity input was rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CapabilityDenied(SessionError):
    """The environment refused camera, microphone or fullscreen access."""


class SubmissionFailed(SessionError):
    """The submission gateway could not persist the record."""


class AssessmentNotFound(SessionError, KeyError):
    """No test definition exists for the requested identifier."""

    def __init__(self, test_id: str) -> None:
        super().__init__(test_id)
        self.test_id = test_id

    def __str__(self) -> str:
        return f"test not found: {self.test_id}"


class QuestionNotFound(SessionError, IndexError):
    """A question index does not exist on the test definition."""

    def __init__(self, test_id: str, index: int) -> None:
        super().__init__(test_id, index)
        self.test_id = test_id
        self.index = index

    def __str__(self) -> str:
        return f"question {self.index} not found on test {self.test_id}"
