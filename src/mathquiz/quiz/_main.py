"""Command line entry point for ``mathquiz quiz``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ..core import (
    WorkspaceError,
    configure_logger,
    ensure_workspace,
    release_logger,
)
from . import config as config_mod
from .bank import BankQuestionGenerator, save_bank
from .controller import QuizController
from .generator import GenerationError, OpenAIQuestionGenerator
from .models import (
    Difficulty,
    Grade,
    QuestionType,
    QuizConfig,
    QuizConfigError,
)
from .view.app import QuizApp

LOGGER_NAME = "mathquiz"


def _print_error(message: str) -> None:
    sys.stderr.write(message + "\n")


def _add_config_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to quiz.toml (defaults to $MATHQUIZ_CONFIG or the "
            "workspace config directory)."
        ),
    )


def _add_selector_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--grade", choices=[grade.value for grade in Grade]
    )
    parser.add_argument("--topic", help="Math topic to practise.")
    parser.add_argument(
        "--difficulty", choices=[level.value for level in Difficulty]
    )
    parser.add_argument(
        "--count", type=int, help="Number of questions to ask."
    )
    parser.add_argument(
        "--type",
        dest="question_type",
        choices=[kind.value for kind in QuestionType],
        help="Question type selector.",
    )


def apply_overrides(
    base: QuizConfig, args: argparse.Namespace
) -> QuizConfig:
    """Layer command line selectors over the configured defaults."""

    changes = {}
    if getattr(args, "grade", None) is not None:
        changes["grade"] = Grade(args.grade)
    if getattr(args, "topic", None) is not None:
        changes["topic"] = args.topic
    if getattr(args, "difficulty", None) is not None:
        changes["difficulty"] = Difficulty(args.difficulty)
    if getattr(args, "count", None) is not None:
        changes["question_count"] = args.count
    if getattr(args, "question_type", None) is not None:
        changes["question_type"] = QuestionType(args.question_type)
    return base.with_changes(**changes).validate()


def build_generator(
    ai: config_mod.AIConfig,
) -> OpenAIQuestionGenerator:
    return OpenAIQuestionGenerator(
        model=ai.model,
        temperature=ai.temperature,
        max_tokens=ai.max_tokens,
        request_timeout_seconds=ai.request_timeout_seconds,
    )


def _load_settings(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> tuple[config_mod.AppConfig, QuizConfig]:
    try:
        app_config = config_mod.load_config(
            explicit_path=args.config,
            missing_ok=args.config is None,
        )
        quiz_config = apply_overrides(app_config.quiz, args)
    except (config_mod.ConfigError, QuizConfigError) as exc:
        parser.error(str(exc))
    return app_config, quiz_config


def _setup_logging(
    app_config: config_mod.AppConfig, *, verbose: bool
) -> tuple[logging.Logger, Path]:
    layout = ensure_workspace()
    return configure_logger(
        LOGGER_NAME,
        log_dir=layout.path_for("logs"),
        level=app_config.logging.level,
        verbose=verbose or app_config.logging.verbose,
    )


def _cmd_start(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> int:
    app_config, quiz_config = _load_settings(parser, args)

    if args.bank is not None:
        try:
            generator = BankQuestionGenerator.from_file(
                args.bank, seed=args.seed
            )
        except (OSError, ValueError) as exc:
            _print_error(f"Error: could not read question bank: {exc}")
            return 1
    else:
        generator = build_generator(app_config.ai)

    try:
        logger, log_path = _setup_logging(app_config, verbose=args.verbose)
    except WorkspaceError as exc:
        _print_error(str(exc))
        return 1

    controller = QuizController(generator, config=quiz_config)
    logger.info(
        "Quiz app launched",
        extra={
            "event": "app_started",
            "bank": args.bank,
            "config_path": app_config.path,
            "log_path": log_path,
        },
    )
    try:
        QuizApp(controller, quiz_config).run()
    finally:
        controller.close()
        release_logger(logger)
    return 0


def _cmd_generate(
    parser: argparse.ArgumentParser, args: argparse.Namespace
) -> int:
    app_config, quiz_config = _load_settings(parser, args)
    try:
        logger, _ = _setup_logging(app_config, verbose=args.verbose)
    except WorkspaceError as exc:
        _print_error(str(exc))
        return 1

    generator = build_generator(app_config.ai)
    try:
        questions = generator.generate_sync(quiz_config)
    except GenerationError as exc:
        logger.error(
            "Bank generation failed",
            extra={"event": "generation_failed", "reason": str(exc)},
        )
        _print_error(f"Error: {exc}")
        return 1
    finally:
        release_logger(logger)

    output = Path(args.output).expanduser()
    save_bank(output, questions)
    print(f"Wrote {len(questions)} question(s) -> {output}")
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    try:
        target = config_mod.resolve_config_path(explicit_path=args.path)
        config_mod.write_template(target, overwrite=args.force)
    except (config_mod.ConfigError, WorkspaceError) as exc:
        _print_error(str(exc))
        return 2
    print(f"Wrote config template to {target}")
    return 0


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="mathquiz quiz",
        description="Generate and take timed math quizzes in the terminal.",
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_start = sub.add_parser("start", help="Launch the interactive quiz")
    _add_config_arg(sp_start)
    _add_selector_args(sp_start)
    sp_start.add_argument(
        "--bank",
        type=Path,
        help="Serve questions from a JSONL bank instead of OpenAI.",
    )
    sp_start.add_argument(
        "--seed", type=int, help="Shuffle seed used with --bank."
    )
    sp_start.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )

    sp_gen = sub.add_parser(
        "generate", help="Generate questions into a JSONL bank"
    )
    sp_gen.add_argument("output", help="Destination JSONL file.")
    _add_config_arg(sp_gen)
    _add_selector_args(sp_gen)
    sp_gen.add_argument("--verbose", action="store_true")

    sp_cfg = sub.add_parser("config", help="Manage quiz.toml")
    cfg_sub = sp_cfg.add_subparsers(dest="action", required=True)
    sp_cfg_init = cfg_sub.add_parser(
        "init", help="Write the default quiz.toml template"
    )
    sp_cfg_init.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory).",
    )
    sp_cfg_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command == "start":
        return _cmd_start(parser, args)
    if args.command == "generate":
        return _cmd_generate(parser, args)
    if args.command == "config" and args.action == "init":
        return _cmd_config_init(args)
    parser.print_help()  # pragma: no cover - argparse guards commands
    return 2


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
