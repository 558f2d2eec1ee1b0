"""Session controller: one learner attempt from consent to submission."""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from config.settings import Settings, settings as default_settings
from observability import get_logger, log_event, span

from .answers import AnswerStore
from .environment import Environment
from .errors import SessionError, SubmissionFailed, ValidationFailed
from .events import StatusEvent, Subscription, ViolationEvent, cancel_all
from .gateway import SubmissionGateway
from .models import (
    TERMINAL_PHASES,
    AnswerRecord,
    Assessment,
    Notice,
    Phase,
    SubmissionOutcome,
    SubmissionRecord,
    Trigger,
    validate_identity,
)
from .monitor import IntegrityMonitor
from .scorer import score
from .state import SessionState
from .timer import CountdownTimer, format_clock

logger = get_logger("controller")

SUBMISSION_FAILED_TEXT = "Submission failed. Please contact support."
PROCTORING_DENIED_TEXT = (
    "Camera or fullscreen access was not granted. The test continues without proctoring."
)

_VIOLATION_LABELS = {
    "fullscreen": "Fullscreen exit",
    "escape_key": "Escape key press",
}


def _plain(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        try:
            return sorted(value)
        except TypeError:
            return list(value)
    return value


class SessionController:
    """Drives a learner attempt through consent, the timed test and submission.

    Phases run ``awaiting_consent -> preparing -> in_progress -> submitting``
    and end in ``submitted``, ``failed`` or ``abandoned``. Manual submit,
    timer expiry and a watcher reaching the violation limit all funnel into
    :meth:`request_submit`, whose latch is checked and set before any
    awaiting, so exactly one of them produces the submission record.
    """

    def __init__(
        self,
        assessment: Assessment,
        gateway: SubmissionGateway,
        environment: Environment,
        *,
        config: Optional[Settings] = None,
        session_id: Optional[str] = None,
    ) -> None:
        self._config = config or default_settings
        self._assessment = assessment
        self._gateway = gateway
        extra = {"session_id": session_id} if session_id else {}
        self.state = SessionState(
            test_id=assessment.test_id,
            answers=AnswerStore(assessment.questions),
            **extra,
        )
        self.monitor = IntegrityMonitor(
            environment, session_id=self.state.session_id, config=self._config
        )
        self.timer: Optional[CountdownTimer] = None
        self.record: Optional[SubmissionRecord] = None
        self._latched = False
        self._subscriptions: List[Subscription] = []
        self._submission: Optional[asyncio.Task] = None

    @property
    def assessment(self) -> Assessment:
        return self._assessment

    @property
    def session_id(self) -> str:
        return self.state.session_id

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def terminal(self) -> bool:
        return self.state.phase in TERMINAL_PHASES

    # -- consent and preparation -------------------------------------------

    async def start(self, name: str, email: str, batch: str) -> bool:
        """Validate the identity form, acquire proctoring and begin the test.

        Returns False, leaving the phase unchanged, when the form is invalid.
        Denied capabilities do not block the start; the session runs without
        proctoring and records that in ``proctoring_granted``.
        """

        if self.state.phase != "awaiting_consent":
            return False
        try:
            learner = validate_identity(name, email, batch, self._assessment.batches)
        except ValidationFailed as exc:
            self._notify(Notice(kind="validation", text=exc.message))
            log_event("consent_rejected", self.session_id, detail=exc.message)
            return False

        self.state.learner = learner
        self._transition("preparing")
        granted = await self.monitor.acquire()
        if self.state.phase != "preparing":
            # abandoned while waiting on the environment
            self.monitor.release()
            return False

        self.state.proctoring_granted = granted
        if not granted:
            self._notify(Notice(kind="capability", text=PROCTORING_DENIED_TEXT))
        self._enter_in_progress()
        return True

    def _enter_in_progress(self) -> None:
        duration = self._assessment.duration_seconds
        self.state.duration_seconds = duration
        self.state.remaining_seconds = duration
        self.timer = CountdownTimer(duration, tick_seconds=self._config.TICK_SECONDS)
        self._subscriptions.append(self.timer.ticks.subscribe(self._on_tick))
        self._subscriptions.append(self.timer.expired.subscribe(self._on_expired))
        if self.state.proctoring_granted:
            self._subscriptions.extend(self.monitor.subscribe(self._on_violation))
            self._subscriptions.extend(self.monitor.subscribe_status(self._on_status))
        self._transition("in_progress", proctored=self.state.proctoring_granted)
        self.timer.start()
        self.monitor.start()

    # -- answers -----------------------------------------------------------

    def set_answer(self, index: int, value: Any) -> bool:
        if self.state.phase != "in_progress":
            return False
        return self.state.answers.set(index, value)

    def toggle_option(self, index: int, option: str, checked: bool) -> bool:
        if self.state.phase != "in_progress":
            return False
        return self.state.answers.toggle(index, option, checked)

    def answered_count(self) -> int:
        return self.state.answers.answered_count()

    def is_complete(self) -> bool:
        return self.state.answers.is_complete()

    def remaining_display(self) -> str:
        return format_clock(self.state.remaining_seconds)

    # -- warnings ----------------------------------------------------------

    def dismiss_warning(self) -> bool:
        """Acknowledge the blocking warning.

        A fullscreen warning stays up until fullscreen is active again.
        """

        notice = self.state.blocking_notice
        if notice is None or notice.kind == "submission":
            return False
        if notice.watcher == "fullscreen" and not self.monitor.in_fullscreen():
            return False
        self.state.blocking_notice = None
        return True

    async def resume_fullscreen(self) -> bool:
        """Re-enter fullscreen from a learner gesture and clear its warning."""

        if self.state.phase != "in_progress" or not self.state.proctoring_granted:
            return False
        restored = await self.monitor.fullscreen.restore()
        if restored and self.state.phase == "in_progress":
            notice = self.state.blocking_notice
            if notice is not None and notice.watcher == "fullscreen":
                self.state.blocking_notice = None
        return restored

    # -- submission ----------------------------------------------------------

    async def submit(self) -> SubmissionOutcome:
        """Learner-initiated submit; waits for whichever submission won."""

        self.request_submit("manual")
        return await self.wait_closed()

    def request_submit(self, trigger: Trigger) -> bool:
        """Take the single submission path; return False if it was already taken."""

        if self._latched or self.state.phase != "in_progress":
            log_event("submit_ignored", self.session_id, trigger=trigger, phase=self.state.phase)
            return False
        self._latched = True
        self.state.trigger = trigger
        self._halt()
        self._transition("submitting", trigger=trigger)
        self._submission = asyncio.get_running_loop().create_task(self._finalize())
        return True

    async def wait_closed(self) -> SubmissionOutcome:
        if self._submission is not None:
            await asyncio.shield(self._submission)
        return self.state.outcome

    def abandon(self) -> None:
        """End the attempt without submitting and release every device."""

        if self.terminal or self.state.phase == "submitting":
            return
        self._latched = True
        self._halt()
        self._transition("abandoned")

    def _halt(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
        cancel_all(self._subscriptions)
        self.monitor.release()
        self.state.answers.freeze()

    async def _finalize(self) -> None:
        # Every path out of here ends in submitted or failed.
        try:
            with span(self.state, "score"):
                record = self._build_record()
            self.record = record
            log_event("submission_started", self.session_id, trigger=record.trigger, score=record.score)
            with span(self.state, "gateway_write"):
                await self._gateway.write(record)
        except SubmissionFailed as exc:
            self._fail(str(exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected submission error for session %s", self.session_id)
            self._fail(repr(exc))
        else:
            self.state.outcome = "submitted"
            self._transition("submitted", outcome="submitted", score=record.score)

    def _fail(self, detail: str) -> None:
        self.state.outcome = "failed"
        self._notify(Notice(kind="submission", text=SUBMISSION_FAILED_TEXT, blocking=True))
        self._transition("failed", outcome="failed", detail=detail)

    def _build_record(self) -> SubmissionRecord:
        learner, trigger = self.state.learner, self.state.trigger
        if learner is None or trigger is None:
            raise SessionError("submission requested before the learner consented")
        questions = self._assessment.questions
        answers = self.state.answers.snapshot()
        return SubmissionRecord(
            session_id=self.session_id,
            test_id=self._assessment.test_id,
            test_title=self._assessment.title,
            learner=learner,
            answers=[
                AnswerRecord(
                    question_id=index,
                    question_text=question.text,
                    question_type=question.kind,
                    response=_plain(answers[index]),
                    correct_answer=question.correct_answer,
                )
                for index, question in enumerate(questions)
            ],
            score=score(questions, answers),
            total_questions=len(questions),
            time_taken=self.state.elapsed_seconds,
            violations=dict(self.state.violations),
            camera_healthy=self.state.camera_healthy,
            proctoring_granted=self.state.proctoring_granted,
            trigger=trigger,
        )

    # -- event handlers ------------------------------------------------------

    def _on_tick(self, remaining: int) -> None:
        if self.state.phase == "in_progress":
            self.state.remaining_seconds = remaining

    def _on_expired(self, _: Any) -> None:
        self.request_submit("timer")

    def _on_violation(self, event: ViolationEvent) -> None:
        if self.state.phase != "in_progress":
            return
        watcher = event.watcher
        count = self.state.violations[watcher] + 1
        self.state.violations[watcher] = count
        log_event("violation_counted", self.session_id, watcher=watcher, count=count)
        if watcher == "camera":
            # advisory only; never an auto-submit trigger
            return

        limit = self._config.VIOLATION_LIMIT
        remaining = max(0, limit - count)
        label = _VIOLATION_LABELS[watcher]
        if remaining:
            text = f"{label} detected ({count}/{limit}). {remaining} more and the test is submitted automatically."
        else:
            text = f"{label} detected ({count}/{limit}). The test is being submitted automatically."
        self._notify(Notice(kind="violation", text=text, blocking=True, watcher=watcher))
        if count >= limit:
            self.request_submit(watcher)

    def _on_status(self, event: StatusEvent) -> None:
        if self.state.phase != "in_progress" or event.watcher != "camera":
            return
        self.state.camera_healthy = event.healthy
        text = "Camera reconnected." if event.healthy else "Camera disconnected. Trying to reconnect..."
        self._notify(Notice(kind="camera", text=text, watcher="camera"))

    # -- helpers -------------------------------------------------------------

    def _notify(self, notice: Notice) -> None:
        self.state.notices.append(notice)
        if notice.blocking:
            self.state.blocking_notice = notice

    def _transition(self, phase: Phase, **fields: Any) -> None:
        self.state.phase = phase
        log_event("phase_changed", self.session_id, phase=phase, **fields)


__all__ = ["SessionController", "SUBMISSION_FAILED_TEXT"]
