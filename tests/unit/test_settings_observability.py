from __future__ import annotations

import logging
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from config.settings import Settings, settings
from observability import get_logger, log_event, span
from observability.admin_cli import main as admin_main
from storage.assessments import insert_assessment
from storage.responses import insert_test_response


def test_settings_defaults():
    settings = Settings(_env_file=None)
    assert settings.DB_PATH.endswith(".db")
    assert settings.TICK_SECONDS == 1.0
    assert settings.VIOLATION_LIMIT == 3
    assert settings.CAMERA_REACQUIRE_ATTEMPTS == 2


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("VIOLATION_LIMIT", "5")
    monkeypatch.setenv("TEST_LINK_BASE", "https://exams.example.org")
    settings = Settings(_env_file=None)
    assert settings.VIOLATION_LIMIT == 5
    assert settings.TEST_LINK_BASE == "https://exams.example.org"


def test_settings_reject_invalid_values():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, VIOLATION_LIMIT=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, TICK_SECONDS=0)


class _Collect(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.messages = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


def test_log_event_emits_human_line():
    handler = _Collect()
    logger = get_logger()
    logger.addHandler(handler)
    try:
        log_event("phase_changed", "s1", phase="in_progress", trigger="manual", detail="ignored")
    finally:
        logger.removeHandler(handler)
    assert handler.messages == ["session=s1 kind=phase_changed phase=in_progress trigger=manual"]


def test_span_records_duration():
    state = SimpleNamespace(events=[])
    with span(state, "score"):
        pass
    assert state.events[0]["span"] == "score"
    assert state.events[0]["ms"] >= 0


def test_admin_cli_tails_responses(capsys):
    insert_test_response(
        session_id="s1",
        test_id="t1",
        test_title="Quiz",
        learner_name="Ada",
        learner_email="ada@example.com",
        batch="Batch A",
        answers=[],
        score=2,
        total_questions=3,
        time_taken=90,
        trigger="fullscreen",
    )
    admin_main(["--tail-responses", "5"])
    admin_main(["--test", "t1", "--batch", "Batch A"])
    out = capsys.readouterr().out
    assert "ada@example.com (Batch A) score=2/3 trigger=fullscreen" in out
    assert "Ada <ada@example.com> batch=Batch A score=2/3 time=90s camera=ok" in out


def test_admin_cli_lists_tests(capsys, capital_quiz):
    insert_assessment(capital_quiz)
    admin_main(["--list-tests"])
    out = capsys.readouterr().out
    assert capital_quiz.test_id in out
    assert "'Geography and numbers' questions=" in out
    assert f"link={settings.TEST_LINK_BASE.rstrip('/')}/test/{capital_quiz.test_id}" in out
