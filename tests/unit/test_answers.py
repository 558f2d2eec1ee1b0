from exam_session import AnswerStore
from exam_session.answers import is_unanswered


def test_slots_start_empty_by_kind(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    assert len(store) == 3
    assert store.get(0) == ""
    assert store.get(1) == frozenset()
    assert store.answered_count() == 0
    assert not store.is_complete()


def test_last_write_wins_and_sets_are_frozen(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.set(0, "Lyon")
    store.set(0, "Paris")
    store.set(1, {"2"})
    assert store.get(0) == "Paris"
    assert store.get(1) == frozenset({"2"})


def test_toggle_adds_and_removes_options(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.toggle(1, "2", True)
    store.toggle(1, "4", True)
    store.toggle(1, "2", False)
    store.toggle(1, "3", False)
    assert store.get(1) == frozenset({"4"})


def test_complete_only_when_every_slot_answered(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.set(0, "Paris")
    store.toggle(1, "2", True)
    assert store.answered_count() == 2
    store.set(2, "The Seine")
    assert store.is_complete()
    store.toggle(1, "2", False)
    assert store.answered_count() == 2


def test_frozen_store_ignores_writes(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.set(0, "Paris")
    store.freeze()
    assert store.frozen
    assert store.set(0, "Lyon") is False
    assert store.toggle(1, "2", True) is False
    assert store.snapshot() == ["Paris", frozenset(), ""]


def test_out_of_range_index_is_ignored(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.set(2, "The Seine")
    assert store.set(-1, "overwritten") is False
    assert store.set(len(store), "Paris") is False
    assert store.toggle(-1, "2", True) is False
    assert store.toggle(len(store), "2", True) is False
    assert store.set(True, "Lyon") is False
    assert store.snapshot() == ["", frozenset(), "The Seine"]


def test_toggle_replaces_unhashable_selection(capital_quiz):
    store = AnswerStore(capital_quiz.questions)
    store.set(1, [["2"], ["4"]])
    assert store.toggle(1, "4", True) is True
    assert store.get(1) == frozenset({"4"})

def test_is_unanswered():
    assert is_unanswered("")
    assert is_unanswered(None)
    assert is_unanswered(frozenset())
    assert not is_unanswered("0")
    assert not is_unanswered(0)
    assert not is_unanswered(frozenset({"a"}))
