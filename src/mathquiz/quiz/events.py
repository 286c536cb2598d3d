"""Messages accepted by :class:`~mathquiz.quiz.controller.QuizController`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .models import QuizConfig

__all__ = [
    "ChooseOption",
    "IntegrityViolation",
    "JudgeProposition",
    "NextQuestion",
    "PreviousQuestion",
    "QuizEvent",
    "ResetQuiz",
    "StartQuiz",
    "SubmitQuiz",
]


@dataclass(frozen=True)
class StartQuiz:
    config: QuizConfig


@dataclass(frozen=True)
class ChooseOption:
    index: int
    option_index: int


@dataclass(frozen=True)
class JudgeProposition:
    index: int
    proposition_index: int
    truth: bool


@dataclass(frozen=True)
class NextQuestion:
    pass


@dataclass(frozen=True)
class PreviousQuestion:
    pass


@dataclass(frozen=True)
class SubmitQuiz:
    pass


@dataclass(frozen=True)
class IntegrityViolation:
    """Focus was lost while a quiz was running."""


@dataclass(frozen=True)
class ResetQuiz:
    pass


QuizEvent = Union[
    StartQuiz,
    ChooseOption,
    JudgeProposition,
    NextQuestion,
    PreviousQuestion,
    SubmitQuiz,
    IntegrityViolation,
    ResetQuiz,
]
