"""Rich renderables for the quiz screens.

Kept free of Textual so the summary can also be printed to a plain console.
"""

from __future__ import annotations

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from ..answers import Answer, ChoiceAnswer, TruthAnswer
from ..models import Question, QuestionKind
from ..scoring import MAX_SCORE, QuestionReview, ReviewStatus
from ..session import QuizSession, TerminationReason
from ..timer import format_elapsed

__all__ = [
    "option_key",
    "progress_bar",
    "progress_text",
    "proposition_key",
    "question_body",
    "summary_renderable",
    "truth_mark",
]

_STATUS_STYLES = {
    ReviewStatus.CORRECT: "green",
    ReviewStatus.PARTIAL: "yellow",
    ReviewStatus.INCORRECT: "red",
}


def option_key(index: int) -> str:
    return chr(ord("A") + index)


def proposition_key(index: int) -> str:
    return chr(ord("a") + index)


def truth_mark(value: bool | None) -> str:
    if value is None:
        return "-"
    return "T" if value else "F"


def progress_bar(session: QuizSession) -> ProgressBar:
    """Share of answered questions as a Rich bar."""

    return ProgressBar(
        total=max(session.length, 1),
        completed=session.answers.answered_count(),
    )


def progress_text(session: QuizSession, elapsed_seconds: int = 0) -> str:
    """Header line: position, answered count and elapsed time."""

    total = session.length
    position = session.current_index + 1 if total else 0
    return (
        f"Question {position}/{total} | "
        f"Answered {session.answers.answered_count()}/{total} | "
        f"{format_elapsed(elapsed_seconds)}"
    )


def question_body(question: Question, answer: Answer | None) -> RenderableType:
    """Render the prompt and the current answer state of one question."""

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan", width=3)
    table.add_column("Text", overflow="fold")
    if question.kind is QuestionKind.MULTIPLE_CHOICE:
        selected = (
            answer.selected if isinstance(answer, ChoiceAnswer) else None
        )
        for idx, option in enumerate(question.options):
            row = Text("• " if idx == selected else "  ")
            row += Text(option, style="bold green" if idx == selected else "")
            table.add_row(option_key(idx), row)
    else:
        table.add_column("Answer", justify="center", width=3)
        judgements = (
            answer.judgements if isinstance(answer, TruthAnswer) else ()
        )
        for idx, proposition in enumerate(question.propositions):
            value = judgements[idx] if idx < len(judgements) else None
            table.add_row(
                proposition_key(idx),
                Text(proposition),
                Text(truth_mark(value), style="bold"),
            )
    return Group(
        Text(question.kind.label, style="dim"),
        Text(question.prompt, style="bold"),
        table,
    )


def _review_options(item: QuestionReview) -> Table:
    question = item.question
    answer = item.answer
    table = Table(show_header=False, box=None, expand=True, padding=(0, 1))
    table.add_column("Key", width=3)
    table.add_column("Text", overflow="fold")
    table.add_column("Mark", justify="right")
    selected = answer.selected if isinstance(answer, ChoiceAnswer) else None
    for idx, option in enumerate(question.options):
        is_key = idx == question.correct_option_index
        style = ""
        if is_key:
            style = "bold green"
        elif idx == selected:
            style = "bold red strike"
        mark = ""
        if is_key:
            mark = "✓ key"
        elif idx == selected:
            mark = "your pick"
        table.add_row(f"{option_key(idx)}.", Text(option, style=style), mark)
    return table


def _match_mark(matched: bool) -> Text:
    if matched:
        return Text("✓", style="green")
    return Text("✗", style="red")


def _review_propositions(item: QuestionReview) -> Table:
    question = item.question
    answer = item.answer
    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("", width=3)
    table.add_column("Statement", overflow="fold")
    table.add_column("You", justify="center")
    table.add_column("Key", justify="center")
    table.add_column("", justify="center")
    judgements = answer.judgements if isinstance(answer, TruthAnswer) else ()
    for idx, proposition in enumerate(question.propositions):
        given = judgements[idx] if idx < len(judgements) else None
        matched = idx < len(item.matches) and item.matches[idx]
        table.add_row(
            f"{proposition_key(idx)})",
            proposition,
            truth_mark(given),
            truth_mark(question.correct_truths[idx]),
            _match_mark(matched),
        )
    return table


def _review_panel(item: QuestionReview) -> Panel:
    question = item.question
    if question.kind is QuestionKind.MULTIPLE_CHOICE:
        details = _review_options(item)
    else:
        details = _review_propositions(item)
    parts: list[RenderableType] = [Text(question.prompt), details]
    if question.explanation:
        parts.append(
            Text.assemble(("Explanation: ", "bold cyan"), question.explanation)
        )
    points = float(item.points)
    return Panel(
        Group(*parts),
        title=f"Question {item.position + 1}",
        subtitle=f"{points:g} pt",
        border_style=_STATUS_STYLES[item.status],
    )


def summary_renderable(
    session: QuizSession, topic: str | None = None
) -> RenderableType:
    """Score banner plus a review panel per question."""

    report = session.report
    if report is None:
        return Text("Quiz not finished yet.", style="dim")

    parts: list[RenderableType] = []
    if session.termination_reason is TerminationReason.INTEGRITY_VIOLATION:
        parts.append(
            Panel(
                Text(
                    "The quiz window lost focus; answers were submitted "
                    "automatically.",
                    justify="center",
                ),
                title="Integrity violation",
                border_style="bold red",
            )
        )
    headline = Text.assemble(
        (f"{report.score:g}", "bold"), (f"/{MAX_SCORE}", "dim")
    )
    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", headline)
    overview.add_row("Topic", topic if topic is not None else session.topic)
    overview.add_row(
        "Fully correct", f"{report.correct_count}/{len(report.reviews)}"
    )
    if session.duration is not None:
        overview.add_row(
            "Time", format_elapsed(int(session.duration.total_seconds()))
        )
    parts.append(overview)
    parts.extend(_review_panel(item) for item in report.reviews)
    return Group(*parts)
