from ._main import build_arg_parser
from .answers import (
    AnswerShapeError,
    AnswerStore,
    ChoiceAnswer,
    TruthAnswer,
)
from .bank import BankQuestionGenerator, load_bank, save_bank
from .controller import QuizController
from .generator import (
    GenerationError,
    OpenAIQuestionGenerator,
    QuestionGenerator,
)
from .models import (
    Difficulty,
    Grade,
    Question,
    QuestionKind,
    QuestionShapeError,
    QuestionType,
    QuizConfig,
    QuizConfigError,
)
from .scoring import ScoreReport, build_report, score
from .session import Phase, QuizSession, TerminationReason
from .watchdog import FocusSignal, IntegrityWatchdog

__all__ = [
    "build_arg_parser",
    "AnswerShapeError",
    "AnswerStore",
    "ChoiceAnswer",
    "TruthAnswer",
    "BankQuestionGenerator",
    "load_bank",
    "save_bank",
    "QuizController",
    "GenerationError",
    "OpenAIQuestionGenerator",
    "QuestionGenerator",
    "Difficulty",
    "Grade",
    "Question",
    "QuestionKind",
    "QuestionShapeError",
    "QuestionType",
    "QuizConfig",
    "QuizConfigError",
    "ScoreReport",
    "build_report",
    "score",
    "Phase",
    "QuizSession",
    "TerminationReason",
    "FocusSignal",
    "IntegrityWatchdog",
]
