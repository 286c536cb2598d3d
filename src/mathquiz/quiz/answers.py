"""Per-question answer slots.

Each question owns one slot whose shape follows the question's kind: a
selected option index for multiple choice, or four independent true/false
judgements for a true/false set. Slots are immutable values; the store
replaces them on every write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Sequence, Union

from .models import OPTION_COUNT, PROPOSITION_COUNT, Question, QuestionKind

__all__ = [
    "UNANSWERED",
    "Answer",
    "AnswerShapeError",
    "AnswerStore",
    "ChoiceAnswer",
    "TruthAnswer",
    "blank_answer",
]

# Never equal to a valid option index.
UNANSWERED = -1


class AnswerShapeError(ValueError):
    """Raised when an answer does not fit the question it is recorded for."""


@dataclass(frozen=True)
class ChoiceAnswer:
    selected: int = UNANSWERED

    kind = QuestionKind.MULTIPLE_CHOICE

    @property
    def is_answered(self) -> bool:
        return self.selected != UNANSWERED


def _blank_judgements() -> tuple[bool | None, ...]:
    return (None,) * PROPOSITION_COUNT


@dataclass(frozen=True)
class TruthAnswer:
    judgements: tuple[bool | None, ...] = field(default_factory=_blank_judgements)

    kind = QuestionKind.TRUE_FALSE

    @property
    def is_answered(self) -> bool:
        return any(value is not None for value in self.judgements)

    def with_judgement(self, position: int, truth: bool) -> "TruthAnswer":
        updated = list(self.judgements)
        updated[position] = truth
        return TruthAnswer(tuple(updated))


Answer = Union[ChoiceAnswer, TruthAnswer]


def blank_answer(question: Question) -> Answer:
    """Return the unanswered slot matching ``question``'s kind."""

    if question.kind is QuestionKind.MULTIPLE_CHOICE:
        return ChoiceAnswer()
    return TruthAnswer()


class AnswerStore:
    """One answer slot per question, addressed by question position."""

    def __init__(self, questions: Sequence[Question]) -> None:
        self._kinds = tuple(question.kind for question in questions)
        self._slots: list[Answer] = [blank_answer(q) for q in questions]
        self._frozen = False

    def __len__(self) -> int:
        return len(self._slots)

    def __getitem__(self, index: int) -> Answer:
        return self._slots[index]

    def __iter__(self) -> Iterator[Answer]:
        return iter(tuple(self._slots))

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """Ignore every later write."""

        self._frozen = True

    def set_choice(self, index: int, option_index: int) -> bool:
        """Record ``option_index`` for the multiple-choice question at
        ``index``. Returns ``False`` when the store is frozen."""

        if self._frozen:
            return False
        self._require_kind(index, QuestionKind.MULTIPLE_CHOICE)
        if (
            not isinstance(option_index, int)
            or isinstance(option_index, bool)
            or not 0 <= option_index < OPTION_COUNT
        ):
            raise AnswerShapeError(
                f"Option index must be in [0, {OPTION_COUNT - 1}], "
                f"got {option_index!r}."
            )
        self._slots[index] = ChoiceAnswer(option_index)
        return True

    def set_proposition(
        self, index: int, proposition_index: int, truth: bool
    ) -> bool:
        """Judge one proposition of the true/false question at ``index``,
        leaving the other three untouched."""

        if self._frozen:
            return False
        self._require_kind(index, QuestionKind.TRUE_FALSE)
        if (
            not isinstance(proposition_index, int)
            or isinstance(proposition_index, bool)
            or not 0 <= proposition_index < PROPOSITION_COUNT
        ):
            raise AnswerShapeError(
                f"Proposition index must be in [0, {PROPOSITION_COUNT - 1}], "
                f"got {proposition_index!r}."
            )
        if not isinstance(truth, bool):
            raise AnswerShapeError(f"Judgement must be a bool, got {truth!r}.")
        current = self._slots[index]
        assert isinstance(current, TruthAnswer)
        self._slots[index] = current.with_judgement(proposition_index, truth)
        return True

    def is_answered(self, index: int) -> bool:
        return self._slots[index].is_answered

    def answered_count(self) -> int:
        return sum(1 for slot in self._slots if slot.is_answered)

    def progress(self) -> float:
        if not self._slots:
            return 0.0
        return self.answered_count() / len(self._slots)

    def snapshot(self) -> tuple[Answer, ...]:
        return tuple(self._slots)

    def _require_kind(self, index: int, kind: QuestionKind) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self._slots):
            raise AnswerShapeError(f"No question at position {index!r}.")
        if self._kinds[index] is not kind:
            raise AnswerShapeError(
                f"Question {index + 1} is {self._kinds[index].label}, "
                f"cannot record a {kind.label} answer."
            )
