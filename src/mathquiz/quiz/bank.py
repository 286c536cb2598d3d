"""JSONL question banks for offline quizzes."""

from __future__ import annotations

import json
import random
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .generator import GenerationError, check_generated
from .models import Question, QuestionShapeError, QuizConfig

__all__ = [
    "BankQuestionGenerator",
    "load_bank",
    "read_jsonl",
    "save_bank",
    "write_jsonl",
]


def read_jsonl(path: Path) -> List[dict]:
    data: List[dict] = []
    with Path(path).open("r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            data.append(json.loads(line))
    return data


def write_jsonl(path: Path, records: Sequence[dict]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8") as fh:
        for rec in records:
            fh.write(json.dumps(rec, ensure_ascii=False))
            fh.write("\n")


def load_bank(path: Path) -> Tuple[Question, ...]:
    """Read every question stored in the JSONL file at ``path``.

    Raises ``ValueError`` naming the offending line for malformed entries.
    """

    questions: List[Question] = []
    for line_no, record in enumerate(read_jsonl(path), start=1):
        try:
            questions.append(Question.from_dict(record))
        except QuestionShapeError as exc:
            raise ValueError(f"{path}: entry {line_no}: {exc}") from exc
    return tuple(questions)


def save_bank(path: Path, questions: Sequence[Question]) -> None:
    write_jsonl(path, [question.to_dict() for question in questions])


class BankQuestionGenerator:
    """Serve quizzes from a fixed pool of questions.

    Questions are filtered by the requested kind, shuffled (deterministic
    when ``seed`` is given) and cut to the requested count.
    """

    def __init__(
        self, questions: Sequence[Question], *, seed: Optional[int] = None
    ) -> None:
        self._questions = tuple(questions)
        self._rng = random.Random(seed)

    @classmethod
    def from_file(
        cls, path: Path, *, seed: Optional[int] = None
    ) -> "BankQuestionGenerator":
        return cls(load_bank(path), seed=seed)

    def __len__(self) -> int:
        return len(self._questions)

    async def generate(self, config: QuizConfig) -> Sequence[Question]:
        return self.pick(config)

    def pick(self, config: QuizConfig) -> Tuple[Question, ...]:
        wanted = config.question_type.kind
        pool = [
            question
            for question in self._questions
            if wanted is None or question.kind is wanted
        ]
        if len(pool) < config.question_count:
            raise GenerationError(
                f"Question bank holds {len(pool)} matching question(s); "
                f"{config.question_count} requested."
            )
        self._rng.shuffle(pool)
        return check_generated(config, pool[: config.question_count])
