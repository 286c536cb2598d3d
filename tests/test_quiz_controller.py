from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from fixtures import FailingGenerator, GatedGenerator, StaticGenerator, mc, tf
from mathquiz.quiz.answers import ChoiceAnswer, TruthAnswer
from mathquiz.quiz.controller import QuizController
from mathquiz.quiz.events import (
    ChooseOption,
    IntegrityViolation,
    JudgeProposition,
    NextQuestion,
    PreviousQuestion,
    ResetQuiz,
    StartQuiz,
    SubmitQuiz,
)
from mathquiz.quiz.generator import GenerationError
from mathquiz.quiz.models import QuestionType, QuizConfig
from mathquiz.quiz.session import Phase, TerminationReason
from mathquiz.quiz.watchdog import FocusSignal

KEY = (True, False, True, False)


def _config(count: int = 2, **changes) -> QuizConfig:
    changes.setdefault("topic", "Algebra")
    return QuizConfig(question_count=count, **changes)


def _questions():
    return (mc(correct=1, id="q1"), tf(truths=KEY, id="q2"))


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(minutes=3)
        return current


def test_start_enters_quiz_with_blank_answers() -> None:
    generator = StaticGenerator(_questions())
    controller = QuizController(generator, clock=_Clock())
    phases = []
    controller.add_listener(lambda c: phases.append(c.phase))

    async def scenario() -> bool:
        started = await controller.start(_config())
        assert controller.timer.running
        assert controller.watchdog.armed
        controller.close()
        return started

    assert asyncio.run(scenario()) is True
    session = controller.session
    assert phases[:2] == [Phase.LOADING, Phase.IN_PROGRESS]
    assert session.current_index == 0
    assert session.length == 2
    assert session.topic == "Algebra"
    assert [a.is_answered for a in session.answers] == [False, False]
    assert session.started_at == datetime(
        2024, 5, 1, 8, 0, tzinfo=timezone.utc
    )
    assert generator.requests == [_config()]


def test_invalid_config_stays_in_setup() -> None:
    generator = StaticGenerator(_questions())
    controller = QuizController(generator)

    started = asyncio.run(controller.start(_config(topic="  ")))

    assert started is False
    assert controller.phase is Phase.SETUP
    assert "Topic" in (controller.last_error or "")
    assert generator.requests == []


def test_generation_failure_returns_to_setup_with_error() -> None:
    controller = QuizController(FailingGenerator(GenerationError("boom")))
    config = _config(topic="Geometry")

    started = asyncio.run(controller.start(config))

    assert started is False
    assert controller.phase is Phase.SETUP
    assert "boom" in (controller.last_error or "")
    assert controller.config.topic == "Geometry"
    assert controller.session.length == 0
    assert not controller.watchdog.armed
    assert not controller.timer.running


def test_unexpected_generator_error_is_contained() -> None:
    controller = QuizController(FailingGenerator(KeyError("choices")))

    assert asyncio.run(controller.start(_config())) is False
    assert controller.phase is Phase.SETUP
    assert controller.last_error


def test_wrong_question_count_is_a_failure() -> None:
    controller = QuizController(StaticGenerator(_questions()))

    assert asyncio.run(controller.start(_config(count=3))) is False
    assert controller.phase is Phase.SETUP
    assert "Expected 3 questions, got 2" in (controller.last_error or "")


def test_zero_generated_questions_never_enter_quiz() -> None:
    controller = QuizController(StaticGenerator(()))

    assert asyncio.run(controller.start(_config(count=1))) is False
    assert controller.phase is Phase.SETUP
    assert controller.session.length == 0


def test_wrong_kind_for_fixed_type_is_a_failure() -> None:
    controller = QuizController(StaticGenerator(_questions()))
    config = _config(question_type=QuestionType.MULTIPLE_CHOICE)

    assert asyncio.run(controller.start(config)) is False
    assert "requested Multiple choice" in (controller.last_error or "")


def test_generation_timeout_is_reported() -> None:
    generator = GatedGenerator(_questions())
    controller = QuizController(generator, generation_timeout=0.01)

    assert asyncio.run(controller.start(_config())) is False
    assert controller.phase is Phase.SETUP
    assert "timed out" in (controller.last_error or "")


def test_raw_records_from_generator_are_a_failure() -> None:
    records = [{"type": "MULTIPLE_CHOICE"}]
    generator = StaticGenerator(records)  # type: ignore[arg-type]
    controller = QuizController(generator)

    assert asyncio.run(controller.start(_config(count=1))) is False
    assert controller.phase is Phase.SETUP
    assert "not a question object" in (controller.last_error or "")
    assert controller.session.length == 0
    assert not controller.watchdog.armed


def _running(controller: QuizController) -> None:
    assert asyncio.run(controller.start(_config())) is True


def test_integrity_violation_scores_partial_answers_once() -> None:
    signal = FocusSignal()
    clock = _Clock()
    controller = QuizController(
        StaticGenerator(_questions()), focus_signal=signal, clock=clock
    )
    _running(controller)
    controller.set_choice(0, 1)
    controller.set_proposition(1, 0, True)
    controller.set_proposition(1, 1, True)

    signal.emit(False)
    assert controller.phase is Phase.IN_PROGRESS

    signal.emit(True)

    session = controller.session
    assert controller.phase is Phase.COMPLETE
    assert session.termination_reason is TerminationReason.INTEGRITY_VIOLATION
    # 1 + 0.25 of 2 points
    assert session.score == 6.25
    report = session.report
    ended_at = session.ended_at

    signal.emit(True)
    assert controller.report_violation() is False
    assert controller.handle(IntegrityViolation()) is False
    assert session.report is report
    assert session.ended_at == ended_at
    assert signal.subscriber_count == 0
    assert not controller.timer.running


def test_prev_next_never_touch_answers_or_phase() -> None:
    questions = (mc(id="a"), tf(id="b"), mc(id="c"))
    controller = QuizController(StaticGenerator(questions))
    assert asyncio.run(controller.start(_config(count=3))) is True
    controller.set_choice(0, 2)
    controller.set_proposition(1, 3, False)
    before = controller.session.answers.snapshot()

    assert controller.prev() is False
    for _ in range(3):
        assert controller.next() is True
        assert controller.prev() is True
    assert controller.next() is True
    assert controller.next() is True
    for _ in range(4):
        controller.prev()

    assert controller.session.answers.snapshot() == before
    assert controller.phase is Phase.IN_PROGRESS
    assert controller.session.current_index == 0
    controller.close()


def test_next_on_last_question_submits() -> None:
    controller = QuizController(StaticGenerator(_questions()))
    _running(controller)

    controller.next()
    assert controller.session.is_last
    assert controller.next() is True

    assert controller.phase is Phase.COMPLETE
    assert controller.session.termination_reason is TerminationReason.NORMAL
    assert controller.session.score == 0.0


def test_submit_from_any_question_and_freeze_answers() -> None:
    controller = QuizController(StaticGenerator(_questions()), clock=_Clock())
    _running(controller)
    controller.set_choice(0, 1)

    assert controller.submit() is True
    assert controller.session.score == 5.0
    assert controller.session.duration == timedelta(minutes=3)
    assert controller.set_choice(0, 0) is False
    assert controller.session.answers[0] == ChoiceAnswer(1)
    assert controller.submit() is False
    assert controller.next() is False


def test_invalid_answers_are_rejected_without_raising() -> None:
    controller = QuizController(StaticGenerator(_questions()))
    _running(controller)

    assert controller.set_choice(0, 9) is False
    assert controller.set_choice(1, 0) is False
    assert controller.set_proposition(0, 0, True) is False
    assert controller.set_proposition(1, 5, True) is False
    assert controller.session.answers.answered_count() == 0
    controller.close()


def test_answers_outside_quiz_are_ignored() -> None:
    controller = QuizController(StaticGenerator(_questions()))

    assert controller.set_choice(0, 1) is False
    assert controller.next() is False
    assert controller.submit() is False
    assert controller.reset() is False
    assert controller.phase is Phase.SETUP


def test_reset_after_complete_gives_independent_session() -> None:
    first = (mc(correct=1, id="old"), tf(truths=KEY, id="old-tf"))
    second = (mc(correct=3, id="new"),)
    generator = StaticGenerator(first)
    controller = QuizController(generator)
    _running(controller)
    controller.set_choice(0, 1)
    controller.submit()
    old_session = controller.session

    assert controller.reset() is True
    assert controller.phase is Phase.SETUP
    assert controller.session.length == 0
    assert controller.config.topic == "Algebra"
    assert controller.elapsed_seconds == 0

    generator.questions = second
    assert asyncio.run(controller.start(_config(count=1, topic="Ratios")))
    session = controller.session
    assert session is not old_session
    assert [q.id for q in session.questions] == ["new"]
    assert session.answers[0] == ChoiceAnswer()
    assert session.topic == "Ratios"
    assert old_session.answers[0] == ChoiceAnswer(1)
    controller.close()


def test_reset_during_loading_discards_late_result() -> None:
    generator = GatedGenerator(_questions())
    controller = QuizController(generator)

    async def scenario() -> bool:
        task = asyncio.create_task(controller.start(_config()))
        await generator.started.wait()
        assert controller.phase is Phase.LOADING
        assert controller.reset() is True
        generator.release.set()
        return await task

    assert asyncio.run(scenario()) is False
    assert controller.phase is Phase.SETUP
    assert controller.session.length == 0
    assert controller.last_error is None
    assert not controller.watchdog.armed


def test_close_during_loading_returns_to_setup() -> None:
    generator = GatedGenerator(_questions())
    controller = QuizController(generator)
    phases = []
    controller.add_listener(lambda c: phases.append(c.phase))

    async def scenario() -> bool:
        task = asyncio.create_task(controller.start(_config()))
        await generator.started.wait()
        controller.close()
        assert controller.phase is Phase.SETUP
        generator.release.set()
        return await task

    assert asyncio.run(scenario()) is False
    assert controller.phase is Phase.SETUP
    assert phases == [Phase.LOADING, Phase.SETUP]
    assert controller.session.length == 0
    assert not controller.timer.running
    assert not controller.watchdog.armed


def test_second_start_while_loading_is_ignored() -> None:
    generator = GatedGenerator(_questions())
    controller = QuizController(generator)

    async def scenario():
        task = asyncio.create_task(controller.start(_config()))
        await generator.started.wait()
        second = await controller.start(_config(topic="Other"))
        generator.release.set()
        first = await task
        controller.close()
        return first, second

    first, second = asyncio.run(scenario())
    assert (first, second) == (True, False)
    assert controller.config.topic == "Algebra"


def test_events_route_to_operations() -> None:
    controller = QuizController(StaticGenerator(_questions()))

    async def scenario() -> None:
        assert await controller.dispatch(StartQuiz(_config()))
        assert await controller.dispatch(ChooseOption(0, 1))
        assert controller.handle(NextQuestion())
        assert controller.handle(JudgeProposition(1, 2, True))
        assert controller.handle(PreviousQuestion())
        assert controller.handle(object()) is False  # type: ignore[arg-type]
        assert controller.handle(SubmitQuiz())
        assert controller.handle(ResetQuiz())

    asyncio.run(scenario())
    assert controller.phase is Phase.SETUP


def test_choose_and_judge_target_current_question() -> None:
    controller = QuizController(StaticGenerator(_questions()))
    _running(controller)

    assert controller.choose(1)
    controller.next()
    assert controller.judge(3, False)

    answers = controller.session.answers
    assert answers[0] == ChoiceAnswer(1)
    assert answers[1] == TruthAnswer((None, None, None, False))
    controller.close()


def test_timer_ticks_only_while_in_progress() -> None:
    ticks = []
    controller = QuizController(
        StaticGenerator(_questions()),
        tick_interval=0.01,
        on_tick=ticks.append,
    )

    async def scenario() -> int:
        await controller.start(_config())
        await asyncio.sleep(0.08)
        controller.submit()
        frozen = controller.elapsed_seconds
        await asyncio.sleep(0.05)
        assert controller.elapsed_seconds == frozen
        return frozen

    frozen = asyncio.run(scenario())
    assert frozen >= 1
    assert ticks == list(range(1, frozen + 1))
    assert not controller.timer.pending


def test_close_tears_down_running_quiz() -> None:
    signal = FocusSignal()
    controller = QuizController(
        StaticGenerator(_questions()), focus_signal=signal
    )
    _running(controller)

    controller.close()

    assert signal.subscriber_count == 0
    assert not controller.timer.running


def test_listener_unsubscribe() -> None:
    controller = QuizController(StaticGenerator(_questions()))
    seen = []
    remove = controller.add_listener(lambda c: seen.append(c.phase))
    remove()
    remove()

    _running(controller)

    assert seen == []
    controller.close()


def test_completion_is_logged_with_score(caplog) -> None:
    logger = logging.getLogger("quiztest.controller")
    controller = QuizController(StaticGenerator(_questions()), logger=logger)
    _running(controller)
    controller.set_choice(0, 1)

    with caplog.at_level(logging.INFO, logger="quiztest"):
        controller.submit()

    record = next(r for r in caplog.records if r.message == "Quiz completed")
    assert record.event == "quiz_completed"
    assert record.score == 5.0
    assert record.reason is TerminationReason.NORMAL
