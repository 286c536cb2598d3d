"""Quiz scoring with partial credit for true/false sets.

Every question is worth one point. A multiple-choice question earns the
point only for the exact correct index; a true/false set earns a quarter
point per correctly judged proposition. The final score is the earned share
of the maximum scaled to 10 and rounded half-up to two decimals.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from fractions import Fraction
from typing import Sequence

from .answers import Answer, ChoiceAnswer, TruthAnswer
from .models import PROPOSITION_COUNT, Question, QuestionKind

__all__ = [
    "MAX_SCORE",
    "QuestionReview",
    "ReviewStatus",
    "ScoreReport",
    "build_report",
    "question_points",
    "review",
    "score",
]

MAX_SCORE = 10
_PROPOSITION_WEIGHT = Fraction(1, PROPOSITION_COUNT)


class ReviewStatus(str, Enum):
    CORRECT = "correct"
    PARTIAL = "partial"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class QuestionReview:
    """Per-question outcome shown on the summary screen."""

    position: int
    question: Question
    answer: Answer
    points: Fraction
    status: ReviewStatus
    matches: tuple[bool, ...] = ()

    @property
    def matched_count(self) -> int:
        return sum(1 for flag in self.matches if flag)


@dataclass(frozen=True)
class ScoreReport:
    score: float
    total_points: Fraction
    max_points: int
    reviews: tuple[QuestionReview, ...]

    @property
    def correct_count(self) -> int:
        return sum(
            1 for item in self.reviews if item.status is ReviewStatus.CORRECT
        )


def _truth_matches(question: Question, answer: TruthAnswer) -> tuple[bool, ...]:
    # ``None`` never equals True or False, so blank sub-slots never match.
    return tuple(
        given == expected
        for given, expected in zip(answer.judgements, question.correct_truths)
    )


def question_points(question: Question, answer: Answer) -> Fraction:
    """Points earned by ``answer`` on ``question`` (between 0 and 1)."""

    if question.kind is QuestionKind.MULTIPLE_CHOICE:
        if not isinstance(answer, ChoiceAnswer):
            return Fraction(0)
        return Fraction(int(answer.selected == question.correct_option_index))
    if not isinstance(answer, TruthAnswer):
        return Fraction(0)
    return _PROPOSITION_WEIGHT * sum(_truth_matches(question, answer))


def _round_score(value: Fraction) -> float:
    exact = Decimal(value.numerator) / Decimal(value.denominator)
    return float(exact.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _check_lengths(
    questions: Sequence[Question], answers: Sequence[Answer]
) -> None:
    if len(questions) != len(answers):
        raise ValueError(
            f"Expected {len(questions)} answers, got {len(answers)}."
        )


def score(questions: Sequence[Question], answers: Sequence[Answer]) -> float:
    """Return the 0-10 score for ``answers``; an empty quiz scores 0.0."""

    _check_lengths(questions, answers)
    if not questions:
        return 0.0
    total = sum(
        (question_points(q, a) for q, a in zip(questions, answers)),
        Fraction(0),
    )
    return _round_score(total / len(questions) * MAX_SCORE)


def review(
    questions: Sequence[Question], answers: Sequence[Answer]
) -> tuple[QuestionReview, ...]:
    _check_lengths(questions, answers)
    items: list[QuestionReview] = []
    for position, (question, answer) in enumerate(zip(questions, answers)):
        points = question_points(question, answer)
        matches: tuple[bool, ...] = ()
        if isinstance(answer, TruthAnswer) and (
            question.kind is QuestionKind.TRUE_FALSE
        ):
            matches = _truth_matches(question, answer)
        if points == 1:
            status = ReviewStatus.CORRECT
        elif points > 0:
            status = ReviewStatus.PARTIAL
        else:
            status = ReviewStatus.INCORRECT
        items.append(
            QuestionReview(
                position=position,
                question=question,
                answer=answer,
                points=points,
                status=status,
                matches=matches,
            )
        )
    return tuple(items)


def build_report(
    questions: Sequence[Question], answers: Sequence[Answer]
) -> ScoreReport:
    reviews = review(questions, answers)
    return ScoreReport(
        score=score(questions, answers),
        total_points=sum((item.points for item in reviews), Fraction(0)),
        max_points=len(questions),
        reviews=reviews,
    )
