"""Per-question answer slots for a single learner attempt."""
from __future__ import annotations

from typing import Any, List, Sequence

from .models import Question


def is_unanswered(value: Any) -> bool:
    if value is None or value == "":
        return True
    if isinstance(value, (set, frozenset, list, tuple)):
        return len(value) == 0
    return False


class AnswerStore:
    """Mutable answer slots, one per question index; last write wins.

    Multiple-choice slots start as an empty frozenset, every other kind as an
    empty string. Values are stored as given without checking them against
    the question kind. Writes to an index outside the question list, or after
    the store is frozen, are ignored and return False.
    """

    def __init__(self, questions: Sequence[Question]) -> None:
        self._slots: List[Any] = [
            frozenset() if question.kind == "multiple" else "" for question in questions
        ]
        self._frozen = False

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, index: int) -> Any:
        return self._slots[index]

    def accepts(self, index: Any) -> bool:
        """True when writes to ``index`` would be stored."""

        return (
            not self._frozen
            and isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < len(self._slots)
        )

    def set(self, index: int, value: Any) -> bool:
        if not self.accepts(index):
            return False
        if isinstance(value, set):
            value = frozenset(value)
        self._slots[index] = value
        return True

    def toggle(self, index: int, option: str, checked: bool) -> bool:
        """Add or remove ``option`` from a multiple-choice slot."""

        if not self.accepts(index):
            return False
        current = self._slots[index]
        try:
            selected = set(current) if isinstance(current, (set, frozenset, list, tuple)) else set()
        except TypeError:
            selected = set()
        if checked:
            selected.add(option)
        else:
            selected.discard(option)
        return self.set(index, frozenset(selected))

    def freeze(self) -> None:
        self._frozen = True

    def snapshot(self) -> List[Any]:
        return list(self._slots)

    def answered_count(self) -> int:
        return sum(1 for value in self._slots if not is_unanswered(value))

    def is_complete(self) -> bool:
        return self.answered_count() == len(self._slots)


__all__ = ["AnswerStore", "is_unanswered"]
