"""Quiz state machine.

The controller is the only thing that mutates quiz state. It moves through
``SETUP -> LOADING -> IN_PROGRESS -> COMPLETE`` and back to ``SETUP`` on
reset. Every operation is a no-op returning ``False`` when it does not apply
to the current phase; invalid input never raises to the caller.

Scoring happens exactly once per session, in :meth:`QuizController._complete`,
whether the quiz was submitted or ended by an integrity violation.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from .answers import AnswerShapeError
from .events import (
    ChooseOption,
    IntegrityViolation,
    JudgeProposition,
    NextQuestion,
    PreviousQuestion,
    QuizEvent,
    ResetQuiz,
    StartQuiz,
    SubmitQuiz,
)
from .generator import QuestionGenerator, check_generated
from .models import Question, QuizConfig, QuizConfigError
from .scoring import build_report
from .session import Phase, QuizSession, TerminationReason
from .timer import ElapsedTimer
from .watchdog import FocusSignal, IntegrityWatchdog

__all__ = ["QuizController"]

Listener = Callable[["QuizController"], None]
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizController:
    """Owns the quiz session and every transition applied to it."""

    def __init__(
        self,
        generator: QuestionGenerator,
        *,
        focus_signal: Optional[FocusSignal] = None,
        clock: Optional[Clock] = None,
        generation_timeout: Optional[float] = None,
        tick_interval: float = 1.0,
        on_tick: Optional[Callable[[int], None]] = None,
        config: Optional[QuizConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._generator = generator
        self._clock = clock or _utcnow
        self._generation_timeout = generation_timeout
        self._logger = logger or logging.getLogger(__name__)
        self._phase = Phase.SETUP
        self._config = config or QuizConfig.default()
        self._session = QuizSession.empty()
        self._last_error: Optional[str] = None
        self._generation = 0
        self._listeners: list[Listener] = []
        self._timer = ElapsedTimer(tick_interval, on_tick=on_tick)
        self._focus_signal = focus_signal or FocusSignal()
        self._watchdog = IntegrityWatchdog(self._focus_signal, self.handle)

    # -- read-only state -------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def config(self) -> QuizConfig:
        return self._config

    @property
    def session(self) -> QuizSession:
        return self._session

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @property
    def focus_signal(self) -> FocusSignal:
        return self._focus_signal

    @property
    def watchdog(self) -> IntegrityWatchdog:
        return self._watchdog

    @property
    def timer(self) -> ElapsedTimer:
        return self._timer

    @property
    def elapsed_seconds(self) -> int:
        return self._timer.seconds

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change; returns an
        unsubscribe callable."""

        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # -- setup -----------------------------------------------------------

    def update_config(self, config: QuizConfig) -> bool:
        """Replace the settings used by the next :meth:`start`."""

        if self._phase is not Phase.SETUP:
            return self._ignored("update_config")
        self._config = config
        self._notify()
        return True

    async def start(self, config: Optional[QuizConfig] = None) -> bool:
        """Generate questions for ``config`` and begin the quiz.

        Returns ``True`` when the quiz is running afterwards. Failures leave
        the controller in ``SETUP`` with :attr:`last_error` set and the config
        kept for another attempt.
        """

        if self._phase is not Phase.SETUP:
            return self._ignored("start")
        candidate = config or self._config
        try:
            validated = candidate.validate()
        except QuizConfigError as exc:
            self._config = candidate
            self._last_error = str(exc)
            self._notify()
            return False

        self._config = validated
        self._last_error = None
        self._generation += 1
        token = self._generation
        self._phase = Phase.LOADING
        self._logger.info(
            "Generating questions",
            extra={
                "event": "generation_requested",
                "grade": validated.grade,
                "topic": validated.topic,
                "difficulty": validated.difficulty,
                "count": validated.question_count,
                "question_type": validated.question_type,
            },
        )
        self._notify()

        try:
            questions = check_generated(
                validated, await self._generate(validated)
            )
        except asyncio.CancelledError:
            if token == self._generation and self._phase is Phase.LOADING:
                self._phase = Phase.SETUP
                self._notify()
            raise
        except Exception as exc:
            if token != self._generation:
                self._discarded(token)
                return False
            self._fail_generation(exc)
            return False

        if token != self._generation or self._phase is not Phase.LOADING:
            self._discarded(token)
            return False
        self._begin(questions)
        return True

    async def _generate(self, config: QuizConfig) -> Sequence[Question]:
        pending = self._generator.generate(config)
        if self._generation_timeout is None:
            return await pending
        try:
            return await asyncio.wait_for(pending, self._generation_timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(
                "Question generation timed out after "
                f"{self._generation_timeout:g}s."
            ) from exc

    def _begin(self, questions: Sequence[Question]) -> None:
        self._session = QuizSession.begin(
            questions,
            started_at=self._clock(),
            topic=self._config.topic,
        )
        self._phase = Phase.IN_PROGRESS
        self._timer.reset()
        self._timer.start()
        self._watchdog.arm()
        self._logger.info(
            "Quiz started",
            extra={"event": "quiz_started", "questions": len(questions)},
        )
        self._notify()

    def _fail_generation(self, exc: BaseException) -> None:
        self._phase = Phase.SETUP
        self._session = QuizSession.empty()
        self._last_error = f"Could not generate questions. {exc}".strip()
        self._logger.error(
            "Question generation failed",
            exc_info=exc,
            extra={"event": "generation_failed", "reason": str(exc)},
        )
        self._notify()

    def _discarded(self, token: int) -> None:
        self._logger.info(
            "Discarded stale generation result",
            extra={"event": "generation_discarded", "token": token},
        )

    # -- answering and navigation ---------------------------------------

    def set_choice(self, index: int, option_index: int) -> bool:
        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("set_choice")
        try:
            changed = self._session.answers.set_choice(index, option_index)
        except AnswerShapeError as exc:
            return self._rejected(exc)
        if changed:
            self._notify()
        return changed

    def set_proposition(
        self, index: int, proposition_index: int, truth: bool
    ) -> bool:
        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("set_proposition")
        try:
            changed = self._session.answers.set_proposition(
                index, proposition_index, truth
            )
        except AnswerShapeError as exc:
            return self._rejected(exc)
        if changed:
            self._notify()
        return changed

    def choose(self, option_index: int) -> bool:
        """Answer the question in focus with ``option_index``."""

        return self.set_choice(self._session.current_index, option_index)

    def judge(self, proposition_index: int, truth: bool) -> bool:
        """Judge a proposition of the question in focus."""

        return self.set_proposition(
            self._session.current_index, proposition_index, truth
        )

    def next(self) -> bool:
        """Move forward, or submit when already on the last question."""

        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("next")
        session = self._session
        if session.current_index < session.length - 1:
            session.current_index += 1
            self._notify()
            return True
        return self._complete(TerminationReason.NORMAL)

    def prev(self) -> bool:
        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("prev")
        if self._session.current_index == 0:
            return False
        self._session.current_index -= 1
        self._notify()
        return True

    def submit(self) -> bool:
        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("submit")
        return self._complete(TerminationReason.NORMAL)

    def report_violation(self) -> bool:
        """End the running quiz immediately because focus was lost."""

        if self._phase is not Phase.IN_PROGRESS:
            return self._ignored("integrity_violation")
        return self._complete(TerminationReason.INTEGRITY_VIOLATION)

    def reset(self) -> bool:
        """Discard the session and return to setup, keeping the config.

        Also cancels a pending load; its result is dropped when it arrives.
        """

        if self._phase not in (Phase.COMPLETE, Phase.LOADING):
            return self._ignored("reset")
        if self._phase is Phase.LOADING:
            self._generation += 1
        self._teardown()
        self._session = QuizSession.empty()
        self._timer.reset()
        self._phase = Phase.SETUP
        self._last_error = None
        self._notify()
        return True

    def close(self) -> None:
        """Release the timer and watchdog; pending loads are dropped.

        A controller closed while loading goes back to ``SETUP``.
        """

        self._generation += 1
        self._teardown()
        if self._phase is Phase.LOADING:
            self._phase = Phase.SETUP
            self._notify()

    # -- events ----------------------------------------------------------

    def handle(self, event: QuizEvent) -> bool:
        """Apply a synchronous event; :class:`StartQuiz` needs
        :meth:`dispatch`."""

        if isinstance(event, ChooseOption):
            return self.set_choice(event.index, event.option_index)
        if isinstance(event, JudgeProposition):
            return self.set_proposition(
                event.index, event.proposition_index, event.truth
            )
        if isinstance(event, NextQuestion):
            return self.next()
        if isinstance(event, PreviousQuestion):
            return self.prev()
        if isinstance(event, SubmitQuiz):
            return self.submit()
        if isinstance(event, IntegrityViolation):
            return self.report_violation()
        if isinstance(event, ResetQuiz):
            return self.reset()
        return self._ignored(type(event).__name__)

    async def dispatch(self, event: QuizEvent) -> bool:
        if isinstance(event, StartQuiz):
            return await self.start(event.config)
        return self.handle(event)

    # -- internals -------------------------------------------------------

    def _complete(self, reason: TerminationReason) -> bool:
        session = self._session
        session.answers.freeze()
        self._teardown()
        session.report = build_report(
            session.questions, session.answers.snapshot()
        )
        session.ended_at = self._clock()
        session.termination_reason = reason
        self._phase = Phase.COMPLETE
        self._logger.info(
            "Quiz completed",
            extra={
                "event": "quiz_completed",
                "reason": reason,
                "score": session.report.score,
                "answered": session.answers.answered_count(),
                "questions": session.length,
                "elapsed_seconds": self._timer.seconds,
            },
        )
        self._notify()
        return True

    def _teardown(self) -> None:
        self._timer.stop()
        self._watchdog.disarm()

    def _ignored(self, action: str) -> bool:
        self._logger.debug(
            "Ignored transition",
            extra={
                "event": "transition_ignored",
                "action": action,
                "phase": self._phase,
            },
        )
        return False

    def _rejected(self, exc: AnswerShapeError) -> bool:
        self._logger.warning(
            "Rejected answer",
            extra={"event": "answer_rejected", "reason": str(exc)},
        )
        return False

    def _notify(self) -> None:
        for listener in tuple(self._listeners):
            listener(self)
