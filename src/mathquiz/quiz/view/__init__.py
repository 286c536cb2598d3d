"""Textual and Rich presentation for quiz sessions."""

from .app import QuizApp, form_config, key_index, next_truth
from .render import progress_text, question_body, summary_renderable

__all__ = [
    "QuizApp",
    "form_config",
    "key_index",
    "next_truth",
    "progress_text",
    "question_body",
    "summary_renderable",
]
