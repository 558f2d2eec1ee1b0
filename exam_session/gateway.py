"""Interfaces of the external collaborators the session core depends on."""
from __future__ import annotations

from typing import Optional, Protocol

from .models import Assessment, SubmissionRecord


class AssessmentRepository(Protocol):  # Read-only test retrieval
    def fetch(self, test_id: str) -> Optional[Assessment]: ...


class SubmissionGateway(Protocol):  # Append-only response persistence
    async def write(self, record: SubmissionRecord) -> None:
        """Persist ``record``; raise ``SubmissionFailed`` when the write fails."""
        ...


__all__ = ["AssessmentRepository", "SubmissionGateway"]
