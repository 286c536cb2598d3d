"""Textual front end driving a :class:`QuizController`."""

from __future__ import annotations

from typing import Optional

from textual import events
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.widget import Widget
from textual.widgets import Button, Input, Label, Select, Static

from ..answers import TruthAnswer
from ..controller import QuizController
from ..models import (
    Difficulty,
    Grade,
    QuestionKind,
    QuestionType,
    QuizConfig,
    QuizConfigError,
)
from ..session import Phase, TerminationReason
from .render import (
    option_key,
    progress_bar,
    progress_text,
    proposition_key,
    question_body,
    summary_renderable,
)

__all__ = ["QuizApp", "form_config", "key_index", "next_truth"]


def key_index(key: str) -> Optional[int]:
    """Map ``a``-``d`` (either case) to 0-3."""

    k = str(key).strip().lower()[:1]
    if not k or not "a" <= k <= "d":
        return None
    return ord(k) - ord("a")


def next_truth(current: Optional[bool]) -> bool:
    """Cycle an unset judgement to True, then flip between True and False."""

    if current is None:
        return True
    return not current


def form_config(
    base: QuizConfig,
    *,
    grade: object,
    topic: str,
    difficulty: object,
    count: str,
    question_type: object,
) -> QuizConfig:
    """Build a validated config from raw setup form values."""

    try:
        question_count = int(str(count).strip())
    except ValueError as exc:
        raise QuizConfigError(
            "Question count must be a whole number."
        ) from exc
    try:
        candidate = base.with_changes(
            grade=Grade(grade),
            topic=topic,
            difficulty=Difficulty(difficulty),
            question_count=question_count,
            question_type=QuestionType(question_type),
        )
    except ValueError as exc:
        raise QuizConfigError(str(exc)) from exc
    return candidate.validate()


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#stage { padding: 1 2; }
#form Input, #form Select { margin-bottom: 1; }
#choices Button { width: 100%; margin-bottom: 1; }
#choices Button.selected { background: $accent; color: black; }
.proposition { height: auto; margin-bottom: 1; }
.proposition Label { width: 1fr; }
.proposition Button { min-width: 6; }
.proposition Button.selected { background: $accent; color: black; }
#nav { height: auto; margin-top: 1; }
#error { color: $error; }
"""
    BINDINGS = [
        ("a", "key('a')", "A"),
        ("b", "key('b')", "B"),
        ("c", "key('c')", "C"),
        ("d", "key('d')", "D"),
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("s", "submit", "Submit"),
        ("r", "reset", "New quiz"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        controller: QuizController,
        config: Optional[QuizConfig] = None,
    ) -> None:
        super().__init__()
        self.controller = controller
        if config is not None:
            controller.update_config(config)
        self._last_phase = controller.phase
        self._unsubscribe = controller.add_listener(self._on_state_change)

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield from self.stage_widgets()

    def on_mount(self) -> None:
        self.set_interval(1.0, self._refresh_clock)

    def on_unmount(self) -> None:
        self._unsubscribe()
        self.controller.close()

    def on_app_blur(self, event: events.AppBlur) -> None:
        self.controller.focus_signal.emit(True)

    # Stage construction

    def stage_widgets(self) -> list[Widget]:
        phase = self.controller.phase
        if phase is Phase.LOADING:
            return self._loading_widgets()
        if phase is Phase.IN_PROGRESS:
            return self._question_widgets()
        if phase is Phase.COMPLETE:
            return self._summary_widgets()
        return self._setup_widgets()

    def _setup_widgets(self) -> list[Widget]:
        cfg = self.controller.config
        form = Vertical(
            Label("Grade"),
            Select(
                [(grade.label, grade.value) for grade in Grade],
                value=Grade(cfg.grade).value,
                allow_blank=False,
                id="grade",
            ),
            Label("Topic"),
            Input(
                value=cfg.topic,
                placeholder="e.g. Linear equations",
                id="topic",
            ),
            Label("Difficulty"),
            Select(
                [(level.label, level.value) for level in Difficulty],
                value=Difficulty(cfg.difficulty).value,
                allow_blank=False,
                id="difficulty",
            ),
            Label("Number of questions"),
            Input(value=str(cfg.question_count), id="count"),
            Label("Question type"),
            Select(
                [(kind.label, kind.value) for kind in QuestionType],
                value=QuestionType(cfg.question_type).value,
                allow_blank=False,
                id="qtype",
            ),
            Button(
                "Start quiz",
                id="start",
                variant="primary",
                disabled=not str(cfg.topic).strip(),
            ),
            id="form",
        )
        widgets: list[Widget] = [Static("MathQuiz", id="title"), form]
        if self.controller.last_error:
            widgets.append(Static(self.controller.last_error, id="error"))
        return widgets

    def _loading_widgets(self) -> list[Widget]:
        cfg = self.controller.config
        return [
            Static(
                f"Generating {cfg.question_count} question(s) on "
                f"'{cfg.topic}'...",
                id="loading",
            ),
            Button("Cancel", id="reset"),
        ]

    def _question_widgets(self) -> list[Widget]:
        session = self.controller.session
        question = session.current_question
        answer = session.current_answer
        if question is None:
            return []
        widgets: list[Widget] = [
            Static(
                progress_text(session, self.controller.elapsed_seconds),
                id="progress",
            ),
            Static(progress_bar(session), id="progress-bar"),
            Static(question_body(question, answer), id="question"),
        ]
        if question.kind is QuestionKind.MULTIPLE_CHOICE:
            selected = getattr(answer, "selected", None)
            buttons = []
            for idx, option in enumerate(question.options):
                btn = Button(
                    f"{option_key(idx)}. {option}", id=f"choice-{idx}"
                )
                if idx == selected:
                    btn.add_class("selected")
                buttons.append(btn)
            widgets.append(Vertical(*buttons, id="choices"))
        else:
            judgements = (
                answer.judgements if isinstance(answer, TruthAnswer) else ()
            )
            rows = []
            for idx, proposition in enumerate(question.propositions):
                value = judgements[idx] if idx < len(judgements) else None
                true_btn = Button("True", id=f"truth-{idx}-1")
                false_btn = Button("False", id=f"truth-{idx}-0")
                if value is True:
                    true_btn.add_class("selected")
                elif value is False:
                    false_btn.add_class("selected")
                rows.append(
                    Horizontal(
                        Label(f"{proposition_key(idx)}) {proposition}"),
                        true_btn,
                        false_btn,
                        classes="proposition",
                    )
                )
            widgets.append(Vertical(*rows, id="propositions"))
        nav: list[Widget] = [
            Button("Prev", id="prev", disabled=session.is_first),
            Button("Submit" if session.is_last else "Next", id="next"),
        ]
        if not session.is_last:
            nav.append(Button("Submit", id="submit", variant="warning"))
        widgets.append(Horizontal(*nav, id="nav"))
        return widgets

    def _summary_widgets(self) -> list[Widget]:
        session = self.controller.session
        return [
            VerticalScroll(
                Static(
                    summary_renderable(session, self.controller.config.topic)
                ),
                id="summary",
            ),
            Button("New quiz", id="reset", variant="primary"),
        ]

    def _update_stage(self) -> None:
        if not self.is_running:
            return
        self.call_later(self._rebuild_stage)

    async def _rebuild_stage(self) -> None:
        stage = self.query_one("#stage", Container)
        await stage.remove_children()
        await stage.mount(*self.stage_widgets())

    def _refresh_clock(self) -> None:
        if not self.is_running:
            return
        if self.controller.phase is not Phase.IN_PROGRESS:
            return
        label = self.query_one("#progress", Static)
        label.update(
            progress_text(
                self.controller.session, self.controller.elapsed_seconds
            )
        )

    def _on_state_change(self, controller: QuizController) -> None:
        phase = controller.phase
        if phase is not self._last_phase:
            if phase is Phase.SETUP and controller.last_error:
                self._alert(controller.last_error, severity="error")
            if (
                phase is Phase.COMPLETE
                and controller.session.termination_reason
                is TerminationReason.INTEGRITY_VIOLATION
            ):
                self._alert(
                    "Focus lost: the quiz was submitted automatically.",
                    severity="warning",
                )
        self._last_phase = phase
        self._update_stage()

    def _alert(self, message: str, *, severity: str) -> None:
        if self.is_running:
            self.notify(message, severity=severity)  # type: ignore[arg-type]

    # Actions

    def start_quiz(self) -> bool:
        """Read the setup form and launch generation in a worker."""

        if self.controller.phase is not Phase.SETUP:
            return False
        try:
            config = form_config(
                self.controller.config,
                grade=self.query_one("#grade", Select).value,
                topic=self.query_one("#topic", Input).value,
                difficulty=self.query_one("#difficulty", Select).value,
                count=self.query_one("#count", Input).value,
                question_type=self.query_one("#qtype", Select).value,
            )
        except QuizConfigError as exc:
            self._alert(str(exc), severity="error")
            return False
        self.run_worker(
            self.controller.start(config),
            name="generate",
            group="generation",
            exit_on_error=False,
        )
        return True

    def action_key(self, key: str) -> None:
        index = key_index(key)
        question = self.controller.session.current_question
        if index is None or question is None:
            return
        if question.kind is QuestionKind.MULTIPLE_CHOICE:
            self.controller.choose(index)
            return
        answer = self.controller.session.current_answer
        current = None
        if isinstance(answer, TruthAnswer):
            current = answer.judgements[index]
        self.controller.judge(index, next_truth(current))

    def action_next(self) -> None:
        self.controller.next()

    def action_prev(self) -> None:
        self.controller.prev()

    def action_submit(self) -> None:
        self.controller.submit()

    def action_reset(self) -> None:
        self.controller.reset()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "topic":
            return
        start = self.query_one("#start", Button)
        start.disabled = not event.value.strip()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid == "start":
            self.start_quiz()
        elif bid.startswith("choice-"):
            self.controller.choose(int(bid.rsplit("-", 1)[1]))
        elif bid.startswith("truth-"):
            _, index, flag = bid.split("-")
            self.controller.judge(int(index), flag == "1")
        elif bid == "next":
            self.action_next()
        elif bid == "prev":
            self.action_prev()
        elif bid == "submit":
            self.action_submit()
        elif bid == "reset":
            self.action_reset()
