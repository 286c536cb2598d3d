"""Question and quiz configuration models.

Questions are immutable once built. A question is either multiple choice
(four options, one correct index) or a true/false set (four propositions,
each judged true or false). Construction enforces that exactly the shape
matching the question's kind is populated.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Mapping, Sequence

__all__ = [
    "OPTION_COUNT",
    "PROPOSITION_COUNT",
    "Difficulty",
    "Grade",
    "Question",
    "QuestionKind",
    "QuestionShapeError",
    "QuestionType",
    "QuizConfig",
    "QuizConfigError",
]

OPTION_COUNT = 4
PROPOSITION_COUNT = 4


class QuestionShapeError(ValueError):
    """Raised when a question's fields do not match its kind."""


class QuizConfigError(ValueError):
    """Raised when a quiz configuration cannot be used to start a quiz."""


class QuestionKind(str, Enum):
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"

    @property
    def label(self) -> str:
        if self is QuestionKind.MULTIPLE_CHOICE:
            return "Multiple choice"
        return "True / False"


class QuestionType(str, Enum):
    """Question-type selector: one fixed kind, or the generator's choice."""

    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    MIXED = "MIXED"

    @property
    def kind(self) -> QuestionKind | None:
        if self is QuestionType.MIXED:
            return None
        return QuestionKind(self.value)

    @property
    def label(self) -> str:
        if self is QuestionType.MIXED:
            return "Mixed"
        if self is QuestionType.MULTIPLE_CHOICE:
            return "Multiple choice (4 options)"
        return "True / False (4 statements)"


class Grade(str, Enum):
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"

    @property
    def label(self) -> str:
        return f"Grade {self.value}"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Question:
    """A single generated question.

    Only one of the two shape pairs is populated: ``options`` and
    ``correct_option_index`` for multiple choice, ``propositions`` and
    ``correct_truths`` for true/false sets.
    """

    id: str
    kind: QuestionKind
    prompt: str
    explanation: str = ""
    options: tuple[str, ...] = ()
    correct_option_index: int | None = None
    propositions: tuple[str, ...] = ()
    correct_truths: tuple[bool, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.kind, QuestionKind):
            raise QuestionShapeError(f"Unknown question kind: {self.kind!r}")
        if not str(self.prompt).strip():
            raise QuestionShapeError("Question text must not be empty.")
        if self.kind is QuestionKind.MULTIPLE_CHOICE:
            self._check_multiple_choice()
        else:
            self._check_true_false()

    def _check_multiple_choice(self) -> None:
        if len(self.options) != OPTION_COUNT:
            raise QuestionShapeError(
                f"Multiple-choice questions need exactly {OPTION_COUNT} "
                f"options, got {len(self.options)}."
            )
        index = self.correct_option_index
        if (
            not isinstance(index, int)
            or isinstance(index, bool)
            or not 0 <= index < OPTION_COUNT
        ):
            raise QuestionShapeError(
                f"Correct option index must be in [0, {OPTION_COUNT - 1}], "
                f"got {index!r}."
            )
        if self.propositions or self.correct_truths:
            raise QuestionShapeError(
                "Multiple-choice questions must not carry propositions."
            )

    def _check_true_false(self) -> None:
        if len(self.propositions) != PROPOSITION_COUNT:
            raise QuestionShapeError(
                f"True/false questions need exactly {PROPOSITION_COUNT} "
                f"propositions, got {len(self.propositions)}."
            )
        if len(self.correct_truths) != PROPOSITION_COUNT or not all(
            isinstance(value, bool) for value in self.correct_truths
        ):
            raise QuestionShapeError(
                f"True/false questions need exactly {PROPOSITION_COUNT} "
                "boolean answers."
            )
        if self.options or self.correct_option_index is not None:
            raise QuestionShapeError(
                "True/false questions must not carry options."
            )

    @classmethod
    def multiple_choice(
        cls,
        prompt: str,
        options: Sequence[str],
        correct_option_index: int,
        *,
        explanation: str = "",
        id: str | None = None,
    ) -> "Question":
        return cls(
            id=id or _new_id(),
            kind=QuestionKind.MULTIPLE_CHOICE,
            prompt=prompt,
            explanation=explanation,
            options=tuple(str(option) for option in options),
            correct_option_index=correct_option_index,
        )

    @classmethod
    def true_false(
        cls,
        prompt: str,
        propositions: Sequence[str],
        correct_truths: Sequence[bool],
        *,
        explanation: str = "",
        id: str | None = None,
    ) -> "Question":
        return cls(
            id=id or _new_id(),
            kind=QuestionKind.TRUE_FALSE,
            prompt=prompt,
            explanation=explanation,
            propositions=tuple(str(item) for item in propositions),
            correct_truths=tuple(correct_truths),
        )

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        """Build a question from its JSON representation.

        Raises :class:`QuestionShapeError` for unknown kinds, missing keys
        or shapes that do not match the kind.
        """

        if not isinstance(payload, Mapping):
            raise QuestionShapeError(
                "Each question must be a JSON object, got "
                f"{type(payload).__name__}."
            )
        raw_kind = str(payload.get("type", "")).strip().upper()
        try:
            kind = QuestionKind(raw_kind)
        except ValueError as exc:
            raise QuestionShapeError(
                f"Unknown question type: {payload.get('type')!r}"
            ) from exc
        identifier = str(payload.get("id") or _new_id())
        prompt = str(payload.get("questionText", "")).strip()
        explanation = str(payload.get("explanation") or "").strip()
        if kind is QuestionKind.MULTIPLE_CHOICE:
            options = payload.get("options")
            if not isinstance(options, list):
                raise QuestionShapeError("'options' must be a list.")
            return cls.multiple_choice(
                prompt,
                [str(option).strip() for option in options],
                payload.get("correctAnswerIndex"),  # type: ignore[arg-type]
                explanation=explanation,
                id=identifier,
            )
        propositions = payload.get("propositions")
        truths = payload.get("correctAnswersTF")
        if not isinstance(propositions, list) or not isinstance(truths, list):
            raise QuestionShapeError(
                "'propositions' and 'correctAnswersTF' must be lists."
            )
        return cls.true_false(
            prompt,
            [str(item).strip() for item in propositions],
            truths,
            explanation=explanation,
            id=identifier,
        )

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "questionText": self.prompt,
        }
        if self.kind is QuestionKind.MULTIPLE_CHOICE:
            payload["options"] = list(self.options)
            payload["correctAnswerIndex"] = self.correct_option_index
        else:
            payload["propositions"] = list(self.propositions)
            payload["correctAnswersTF"] = list(self.correct_truths)
        payload["explanation"] = self.explanation
        return payload


@dataclass(frozen=True)
class QuizConfig:
    """User-editable settings for the next quiz."""

    grade: Grade = Grade.NINE
    topic: str = "Quadratic equations"
    difficulty: Difficulty = Difficulty.MEDIUM
    question_count: int = 5
    question_type: QuestionType = field(default=QuestionType.MIXED)

    @classmethod
    def default(cls) -> "QuizConfig":
        return cls()

    def with_changes(self, **changes: Any) -> "QuizConfig":
        return replace(self, **changes)

    def validate(self) -> "QuizConfig":
        """Return a normalized copy or raise :class:`QuizConfigError`."""

        topic = str(self.topic or "").strip()
        if not topic:
            raise QuizConfigError("Topic must not be empty.")
        count = self.question_count
        if not isinstance(count, int) or isinstance(count, bool) or count <= 0:
            raise QuizConfigError("Question count must be a positive integer.")
        try:
            grade = Grade(self.grade)
            difficulty = Difficulty(self.difficulty)
            question_type = QuestionType(self.question_type)
        except ValueError as exc:
            raise QuizConfigError(str(exc)) from exc
        return replace(
            self,
            grade=grade,
            topic=topic,
            difficulty=difficulty,
            question_type=question_type,
        )
