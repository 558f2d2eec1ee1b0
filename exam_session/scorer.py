"""Automatic scoring of choice questions."""
from __future__ import annotations

from typing import Any, FrozenSet, Optional, Sequence

from .models import Question


def _as_option_set(value: Any) -> Optional[FrozenSet[str]]:
    if not isinstance(value, (set, frozenset, list, tuple)):
        return None
    try:
        return frozenset(value)
    except TypeError:
        # nested lists and other unhashable selections
        return None


def is_answer_correct(question: Question, answer: Any) -> bool:
    """Return True when ``answer`` earns the point for ``question``.

    Single-choice answers must equal the key exactly. Multiple-choice answers
    must select exactly the keyed options: missing or extra selections earn
    nothing. Free-text kinds are never auto-scored.
    """

    if question.kind == "mcq":
        return isinstance(answer, str) and answer == question.correct_answer
    if question.kind == "multiple":
        selected = _as_option_set(answer)
        expected = question.correct_options()
        return selected is not None and bool(expected) and selected == expected
    return False


def score(questions: Sequence[Question], answers: Sequence[Any]) -> int:
    """Count the correctly answered choice questions."""

    total = 0
    for index, question in enumerate(questions):
        answer = answers[index] if index < len(answers) else None
        if is_answer_correct(question, answer):
            total += 1
    return total


def max_score(questions: Sequence[Question]) -> int:
    return sum(1 for question in questions if question.auto_scored)


__all__ = ["is_answer_correct", "max_score", "score"]
