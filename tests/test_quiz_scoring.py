from __future__ import annotations

from fractions import Fraction

import pytest

from fixtures import mc, tf
from mathquiz.quiz.answers import ChoiceAnswer, TruthAnswer
from mathquiz.quiz.scoring import (
    ReviewStatus,
    build_report,
    question_points,
    review,
    score,
)

KEY = (True, False, True, False)


def test_multiple_choice_all_or_nothing() -> None:
    question = mc(correct=2)

    assert question_points(question, ChoiceAnswer(2)) == 1
    assert question_points(question, ChoiceAnswer(1)) == 0
    assert question_points(question, ChoiceAnswer()) == 0


@pytest.mark.parametrize(
    "judgements, expected",
    [
        ((True, False, True, False), Fraction(1)),
        ((True, True, True, True), Fraction(1, 2)),
        ((None, None, None, None), Fraction(0)),
        ((False, True, False, True), Fraction(0)),
        ((True, None, None, None), Fraction(1, 4)),
    ],
)
def test_true_false_quarter_points(judgements, expected) -> None:
    question = tf(truths=KEY)
    assert question_points(question, TruthAnswer(judgements)) == expected


def test_mismatched_answer_shape_scores_zero() -> None:
    assert question_points(mc(), TruthAnswer((True,) * 4)) == 0
    assert question_points(tf(), ChoiceAnswer(0)) == 0


def test_end_to_end_four_question_quiz() -> None:
    questions = [mc(correct=1), mc(correct=0), tf(truths=KEY), tf(truths=KEY)]
    answers = [
        ChoiceAnswer(1),
        ChoiceAnswer(3),
        TruthAnswer(KEY),
        TruthAnswer((True, True, True, True)),
    ]

    report = build_report(questions, answers)

    assert report.total_points == Fraction(5, 2)
    assert report.max_points == 4
    assert report.score == 6.25
    assert score(questions, answers) == 6.25
    assert report.correct_count == 2


def test_score_rounds_to_two_decimals() -> None:
    questions = [mc(), mc(), mc()]
    answers = [ChoiceAnswer(1), ChoiceAnswer(0), ChoiceAnswer(0)]

    assert score(questions, answers) == 3.33


def test_score_rounds_half_up() -> None:
    # 0.25 / 4 * 10 is exactly 0.625
    questions = [tf(truths=KEY)] + [mc() for _ in range(3)]
    answers = [TruthAnswer((True, None, None, None))] + [ChoiceAnswer()] * 3

    assert score(questions, answers) == 0.63


def test_zero_questions_score_zero() -> None:
    assert score([], []) == 0.0
    report = build_report([], [])
    assert report.score == 0.0
    assert report.reviews == ()


def test_score_bounds() -> None:
    questions = [mc(), tf(truths=KEY)]
    best = [ChoiceAnswer(1), TruthAnswer(KEY)]
    worst = [ChoiceAnswer(), TruthAnswer()]

    assert score(questions, best) == 10.0
    assert score(questions, worst) == 0.0


def test_length_mismatch_raises() -> None:
    with pytest.raises(ValueError, match="Expected 2 answers"):
        score([mc(), mc()], [ChoiceAnswer(1)])


def test_review_statuses_and_matches() -> None:
    questions = [mc(correct=1), tf(truths=KEY), tf(truths=KEY)]
    answers = [
        ChoiceAnswer(0),
        TruthAnswer((True, True, True, True)),
        TruthAnswer(KEY),
    ]

    items = review(questions, answers)

    assert [item.status for item in items] == [
        ReviewStatus.INCORRECT,
        ReviewStatus.PARTIAL,
        ReviewStatus.CORRECT,
    ]
    assert items[1].matches == (True, False, True, False)
    assert items[1].matched_count == 2
    assert items[0].matches == ()
