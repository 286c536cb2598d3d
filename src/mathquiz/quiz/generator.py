"""Question generation backed by an OpenAI chat model."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, List, Optional, Protocol, Sequence, Tuple

from ..core import load_client
from .models import (
    Question,
    QuestionKind,
    QuestionShapeError,
    QuestionType,
    QuizConfig,
)

__all__ = [
    "GenerationError",
    "OpenAIQuestionGenerator",
    "QuestionGenerator",
    "check_generated",
]

logger = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Raised when questions cannot be produced for a quiz config."""


class QuestionGenerator(Protocol):
    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        ...


def check_generated(
    config: QuizConfig, questions: Sequence[Question]
) -> Tuple[Question, ...]:
    """Validate a generated batch against ``config``.

    The batch must hold exactly ``config.question_count`` questions and,
    for a fixed question type, only questions of that kind.
    """

    items = tuple(questions)
    for position, item in enumerate(items, start=1):
        if not isinstance(item, Question):
            raise GenerationError(
                f"Question {position} is not a question object: "
                f"{type(item).__name__}."
            )
    if len(items) != config.question_count:
        raise GenerationError(
            f"Expected {config.question_count} questions, got {len(items)}."
        )
    wanted = config.question_type.kind
    if wanted is not None:
        for position, question in enumerate(items, start=1):
            if question.kind is not wanted:
                raise GenerationError(
                    f"Question {position} is {question.kind.label}; "
                    f"requested {wanted.label} only."
                )
    return items


_SYSTEM_PROMPT = (
    "You are an experienced lower-secondary school math teacher. You write "
    "accurate exam-style questions and reply with JSON only."
)

_SCHEMA_LINES = (
    '{"type": "MULTIPLE_CHOICE", "questionText": str, "options": [str x4], '
    '"correctAnswerIndex": 0-3, "explanation": str}\n'
    '{"type": "TRUE_FALSE", "questionText": str, "propositions": [str x4], '
    '"correctAnswersTF": [bool x4], "explanation": str}\n'
)

_TYPE_INSTRUCTIONS = {
    QuestionType.MULTIPLE_CHOICE: (
        "Every question must be MULTIPLE_CHOICE with exactly 4 options and "
        "one correct option."
    ),
    QuestionType.TRUE_FALSE: (
        "Every question must be TRUE_FALSE: a shared stem followed by "
        "exactly 4 statements (a, b, c, d), each independently true or false."
    ),
    QuestionType.MIXED: (
        "Mix MULTIPLE_CHOICE and TRUE_FALSE questions; choose the type that "
        "best suits each question."
    ),
}


class OpenAIQuestionGenerator:
    """Generate quiz questions with the OpenAI chat completions API.

    The blocking client call runs in a worker thread so the caller's event
    loop keeps processing input while a quiz is loading.
    """

    def __init__(
        self,
        client: object = None,
        *,
        model: str = "gpt-4o-mini",
        temperature: float = 0.4,
        max_tokens: int = 4000,
        request_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout_seconds = request_timeout_seconds

    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        return await asyncio.to_thread(self.generate_sync, config)

    def generate_sync(self, config: QuizConfig) -> Tuple[Question, ...]:
        client = self._ensure_client()
        system_prompt, user_prompt = build_prompts(config)
        content = _chat_completion_content(
            client,
            model=self.model,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        records = _extract_json_array(content)
        questions = _build_questions(records)
        logger.debug(
            "Parsed generated questions",
            extra={"event": "generation_parsed", "count": len(questions)},
        )
        return check_generated(config, questions)

    def _ensure_client(self) -> object:
        if self._client is None:
            try:
                self._client = load_client(
                    timeout=self.request_timeout_seconds
                )
            except RuntimeError as exc:
                raise GenerationError(str(exc)) from exc
        return self._client


def build_prompts(config: QuizConfig) -> Tuple[str, str]:
    """Return the system and user prompts for ``config``."""

    user_prompt = (
        f"Write {config.question_count} math questions for grade "
        f"{config.grade.value} students.\n"
        f"Topic: {config.topic}\n"
        f"Difficulty: {config.difficulty.label}\n"
        f"{_TYPE_INSTRUCTIONS[config.question_type]}\n\n"
        "Output a JSON array of objects, one per question, using one of "
        f"these shapes:\n{_SCHEMA_LINES}\n"
        "Write math notation as LaTeX between $...$ (escape backslashes for "
        "JSON). Keep explanations short and show the key step."
    )
    return _SYSTEM_PROMPT, user_prompt


def _chat_completion_content(
    client: object,
    *,
    model: str,
    system_prompt: str,
    user_prompt: str,
    temperature: float,
    max_tokens: int,
) -> str:
    try:
        resp = client.chat.completions.create(  # type: ignore[attr-defined]
            model=model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        raw_content = resp.choices[0].message.content  # type: ignore[index]
    except Exception as exc:
        raise GenerationError(
            f"Question generation request failed: {exc}"
        ) from exc
    content = (raw_content or "").strip()
    if not content:
        raise GenerationError("The model returned an empty response.")
    return content


def _extract_json_array(content: str) -> List[Any]:
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Response is not valid JSON: {exc}") from exc
    if isinstance(data, dict) and isinstance(data.get("questions"), list):
        data = data["questions"]
    if not isinstance(data, list):
        raise GenerationError("Response JSON must be an array of questions.")
    return data


def _normalize_record(record: Any) -> dict:
    if not isinstance(record, dict):
        raise QuestionShapeError("Each question must be a JSON object.")
    normalized = dict(record)
    if "type" not in normalized:
        if "propositions" in normalized:
            normalized["type"] = QuestionKind.TRUE_FALSE.value
        else:
            normalized["type"] = QuestionKind.MULTIPLE_CHOICE.value
    index = normalized.get("correctAnswerIndex")
    if isinstance(index, str) and index.strip().isdigit():
        normalized["correctAnswerIndex"] = int(index.strip())
    truths = normalized.get("correctAnswersTF")
    if isinstance(truths, list):
        normalized["correctAnswersTF"] = [_coerce_truth(v) for v in truths]
    return normalized


def _coerce_truth(value: Any) -> Any:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "t", "yes"}:
            return True
        if lowered in {"false", "f", "no"}:
            return False
    return value


def _build_questions(records: Sequence[Any]) -> List[Question]:
    questions: List[Question] = []
    for position, record in enumerate(records, start=1):
        try:
            question = Question.from_dict(_normalize_record(record))
        except QuestionShapeError as exc:
            raise GenerationError(
                f"Generated question {position} is malformed: {exc}"
            ) from exc
        questions.append(question)
    return questions
