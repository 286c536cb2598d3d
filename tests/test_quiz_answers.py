from __future__ import annotations

import pytest

from fixtures import mc, tf
from mathquiz.quiz.answers import (
    UNANSWERED,
    AnswerShapeError,
    AnswerStore,
    ChoiceAnswer,
    TruthAnswer,
)


def _store() -> AnswerStore:
    return AnswerStore([mc(), tf(), mc()])


def test_store_starts_with_blank_slots_matching_kinds() -> None:
    store = _store()

    assert len(store) == 3
    assert store[0] == ChoiceAnswer()
    assert store[0].selected == UNANSWERED
    assert store[1] == TruthAnswer()
    assert store[1].judgements == (None, None, None, None)
    assert store.answered_count() == 0
    assert store.progress() == 0.0


def test_set_choice_records_and_overwrites() -> None:
    store = _store()

    assert store.set_choice(0, 2) is True
    assert store.set_choice(0, 3) is True
    assert store[0].selected == 3
    assert store.is_answered(0)
    assert not store.is_answered(2)


def test_set_proposition_leaves_other_slots_untouched() -> None:
    store = _store()

    store.set_proposition(1, 2, False)
    store.set_proposition(1, 0, True)

    assert store[1].judgements == (True, None, False, None)
    assert store.answered_count() == 1
    assert store.progress() == pytest.approx(1 / 3)


def test_kind_mismatch_is_rejected() -> None:
    store = _store()

    with pytest.raises(AnswerShapeError, match="cannot record"):
        store.set_choice(1, 0)
    with pytest.raises(AnswerShapeError, match="cannot record"):
        store.set_proposition(0, 0, True)


@pytest.mark.parametrize("option", [-1, 4, True, "1"])
def test_out_of_range_option_is_rejected(option) -> None:
    with pytest.raises(AnswerShapeError):
        _store().set_choice(0, option)


def test_bad_question_position_is_rejected() -> None:
    with pytest.raises(AnswerShapeError, match="No question"):
        _store().set_choice(7, 0)


def test_non_bool_judgement_is_rejected() -> None:
    with pytest.raises(AnswerShapeError, match="bool"):
        _store().set_proposition(1, 0, 1)  # type: ignore[arg-type]


def test_frozen_store_ignores_writes() -> None:
    store = _store()
    store.set_choice(0, 1)
    store.freeze()

    assert store.frozen
    assert store.set_choice(0, 2) is False
    assert store.set_proposition(1, 0, True) is False
    assert store[0].selected == 1
    assert store[1] == TruthAnswer()


def test_snapshot_is_detached_from_later_writes() -> None:
    store = _store()
    snapshot = store.snapshot()
    store.set_choice(0, 0)

    assert snapshot[0] == ChoiceAnswer()
    assert store.snapshot()[0] == ChoiceAnswer(0)


def test_empty_store_progress_is_zero() -> None:
    store = AnswerStore([])
    assert len(store) == 0
    assert store.progress() == 0.0
