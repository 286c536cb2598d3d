"""Question factories and scripted generators for controller tests."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Sequence

from mathquiz.quiz.models import Question, QuizConfig


def mc(
    prompt: str = "Solve $x + 1 = 3$.",
    correct: int = 1,
    *,
    id: Optional[str] = None,
) -> Question:
    return Question.multiple_choice(
        prompt,
        ["$x = 1$", "$x = 2$", "$x = 3$", "$x = 4$"],
        correct,
        explanation="Subtract 1 from both sides.",
        id=id,
    )


def tf(
    prompt: str = "Consider $f(x) = x^2$.",
    truths: Sequence[bool] = (True, False, True, False),
    *,
    id: Optional[str] = None,
) -> Question:
    return Question.true_false(
        prompt,
        [
            "$f(0) = 0$",
            "$f$ is decreasing on $(0, +\\infty)$",
            "$f(-2) = f(2)$",
            "$f(1) = 2$",
        ],
        truths,
        explanation="Evaluate each statement directly.",
        id=id,
    )


def mc_record(**overrides: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "type": "MULTIPLE_CHOICE",
        "questionText": "What is $2 + 2$?",
        "options": ["3", "4", "5", "6"],
        "correctAnswerIndex": 1,
        "explanation": "Basic addition.",
    }
    record.update(overrides)
    return record


def tf_record(**overrides: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "type": "TRUE_FALSE",
        "questionText": "About the number 6:",
        "propositions": ["It is even", "It is prime", "It is > 5", "It is 3!"],
        "correctAnswersTF": [True, False, True, True],
        "explanation": "Check each claim.",
    }
    record.update(overrides)
    return record


class StaticGenerator:
    """Returns the same batch for every request."""

    def __init__(self, questions: Sequence[Question]) -> None:
        self.questions = tuple(questions)
        self.requests: List[QuizConfig] = []

    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        self.requests.append(config)
        return self.questions


class FailingGenerator:
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        raise self.error


class GatedGenerator:
    """Holds every request open until the test releases it."""

    def __init__(self, questions: Sequence[Question]) -> None:
        self.questions = tuple(questions)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        self.started.set()
        await self.release.wait()
        return self.questions
