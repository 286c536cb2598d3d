"""Quiz session state owned by the controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Sequence

from .answers import Answer, AnswerStore
from .models import Question
from .scoring import ScoreReport

__all__ = [
    "Phase",
    "QuizSession",
    "TerminationReason",
]


class Phase(str, Enum):
    SETUP = "setup"
    LOADING = "loading"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class TerminationReason(str, Enum):
    NORMAL = "normal"
    INTEGRITY_VIOLATION = "integrity_violation"


@dataclass
class QuizSession:
    """Questions, answers and progress of one quiz attempt.

    ``report``, ``ended_at`` and ``termination_reason`` are only set once
    the session is complete. A new attempt always gets a new session.
    """

    questions: tuple[Question, ...]
    answers: AnswerStore
    current_index: int = 0
    started_at: datetime | None = None
    ended_at: datetime | None = None
    report: ScoreReport | None = None
    termination_reason: TerminationReason | None = None
    topic: str = field(default="")

    @classmethod
    def empty(cls) -> "QuizSession":
        return cls(questions=(), answers=AnswerStore(()))

    @classmethod
    def begin(
        cls,
        questions: Sequence[Question],
        *,
        started_at: datetime,
        topic: str = "",
    ) -> "QuizSession":
        items = tuple(questions)
        return cls(
            questions=items,
            answers=AnswerStore(items),
            started_at=started_at,
            topic=topic,
        )

    @property
    def length(self) -> int:
        return len(self.questions)

    @property
    def score(self) -> float | None:
        return self.report.score if self.report is not None else None

    @property
    def is_complete(self) -> bool:
        return self.report is not None

    @property
    def current_question(self) -> Question | None:
        if not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def current_answer(self) -> Answer | None:
        if not self.questions:
            return None
        return self.answers[self.current_index]

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_index >= self.length - 1

    @property
    def duration(self) -> timedelta | None:
        if self.started_at is None or self.ended_at is None:
            return None
        return self.ended_at - self.started_at
