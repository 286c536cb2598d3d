"""Configuration for the quiz runner.

Settings live in ``quiz.toml`` with three tables: ``[quiz]`` holds the
defaults for the setup form, ``[ai]`` the OpenAI generation settings and
``[logging]`` the log level. Unknown keys and wrongly typed values raise
:class:`ConfigError`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core import (
    TomlConfigError,
    ensure_workspace,
    load_toml,
    with_defaults,
)
from ..core.config_templates import (
    ConfigTemplateError,
    get_template,
)
from .models import Difficulty, Grade, QuestionType, QuizConfig

__all__ = [
    "AIConfig",
    "AppConfig",
    "CONFIG_FILENAME",
    "CONFIG_PATH_ENV",
    "ConfigError",
    "LoggingConfig",
    "default_tree",
    "load_config",
    "resolve_config_path",
    "write_template",
]

CONFIG_PATH_ENV = "MATHQUIZ_CONFIG"
CONFIG_FILENAME = "quiz.toml"


class ConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class AIConfig:
    model: str
    temperature: float
    max_tokens: int
    request_timeout_seconds: Optional[int]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class AppConfig:
    quiz: QuizConfig
    ai: AIConfig
    logging: LoggingConfig
    path: Optional[Path] = None


def _require_positive_int(value: Any, *, field: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
        raise ConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_bool(value: Any, *, field: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a boolean.")
    return value


def _require_float_range(
    value: Any, *, field: str, min_value: float, max_value: float
) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise ConfigError(f"'{field}' must be a number.")
    number = float(value)
    if not (min_value <= number <= max_value):
        raise ConfigError(
            f"'{field}' must be between {min_value} and {max_value}."
        )
    return number


def _require_string(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_choice(value: Any, *, field: str, enum: type) -> Any:
    raw = str(value).strip() if isinstance(value, (str, int)) else value
    if isinstance(raw, str):
        for member in enum:
            if raw.lower() == member.value.lower():
                return member
    allowed = ", ".join(member.value for member in enum)
    raise ConfigError(f"'{field}' must be one of {allowed}.")


def _build_quiz(section: Mapping[str, Any]) -> QuizConfig:
    return QuizConfig(
        grade=_require_choice(
            section.get("grade"), field="quiz.grade", enum=Grade
        ),
        topic=_require_string(section.get("topic"), field="quiz.topic"),
        difficulty=_require_choice(
            section.get("difficulty"),
            field="quiz.difficulty",
            enum=Difficulty,
        ),
        question_count=_require_positive_int(
            section.get("question_count"), field="quiz.question_count"
        ),
        question_type=_require_choice(
            section.get("question_type"),
            field="quiz.question_type",
            enum=QuestionType,
        ),
    )


def _build_ai(section: Mapping[str, Any]) -> AIConfig:
    timeout = section.get("request_timeout_seconds")
    if timeout is not None:
        timeout = _require_positive_int(
            timeout, field="ai.request_timeout_seconds"
        )
    return AIConfig(
        model=_require_string(section.get("model"), field="ai.model"),
        temperature=_require_float_range(
            section.get("temperature"),
            field="ai.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_tokens=_require_positive_int(
            section.get("max_tokens"), field="ai.max_tokens"
        ),
        request_timeout_seconds=timeout,
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = _require_string(
        section.get("level"), field="logging.level"
    ).upper()
    allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if level not in allowed:
        raise ConfigError(
            "logging.level must be one of "
            "DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    verbose = _require_bool(section.get("verbose"), field="logging.verbose")
    return LoggingConfig(level=level, verbose=verbose)


def _build_config(
    tree: Mapping[str, Any], *, path: Optional[Path]
) -> AppConfig:
    return AppConfig(
        quiz=_build_quiz(tree["quiz"]),
        ai=_build_ai(tree["ai"]),
        logging=_build_logging(tree["logging"]),
        path=path,
    )


def resolve_config_path(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Return ``explicit_path``, else ``$MATHQUIZ_CONFIG``, else the
    workspace config file."""

    env_map = os.environ if env is None else env
    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()
    env_override = env_map.get(CONFIG_PATH_ENV)
    if env_override:
        return Path(env_override).expanduser().resolve()
    layout = ensure_workspace(env=env_map)
    return layout.path_for("config") / CONFIG_FILENAME


def load_config(
    *,
    explicit_path: Optional[Path] = None,
    env: Mapping[str, str] | None = None,
    missing_ok: bool = False,
) -> AppConfig:
    """Load the TOML config, applying defaults and validation.

    With ``missing_ok`` a missing file yields the built-in defaults.
    """

    path = resolve_config_path(explicit_path=explicit_path, env=env)
    if missing_ok and not path.exists():
        return _build_config(default_tree(), path=None)
    try:
        data = load_toml(path)
        tree = with_defaults(_DEFAULTS, data)
    except TomlConfigError as exc:
        raise ConfigError(str(exc)) from exc
    return _build_config(tree, path=path)


def default_tree() -> Dict[str, Any]:
    """Return a copy of the default configuration tree."""

    return with_defaults(_DEFAULTS, {})


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    """Write the packaged ``quiz.toml`` template to ``path``."""

    try:
        return get_template("quiz").write(path, overwrite=overwrite)
    except ConfigTemplateError as exc:
        raise ConfigError(str(exc)) from exc


_DEFAULTS: Dict[str, Any] = {
    "quiz": {
        "grade": "9",
        "topic": "Quadratic equations",
        "difficulty": "medium",
        "question_count": 5,
        "question_type": "MIXED",
    },
    "ai": {
        "model": "gpt-4o-mini",
        "temperature": 0.4,
        "max_tokens": 4000,
        "request_timeout_seconds": None,
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}
