"""Shared testing helpers for the mathquiz test suite."""

from .openai import FakeChatClient  # noqa: F401
from .quiz import (  # noqa: F401
    FailingGenerator,
    GatedGenerator,
    StaticGenerator,
    mc,
    mc_record,
    tf,
    tf_record,
)

__all__ = [
    "FakeChatClient",
    "FailingGenerator",
    "GatedGenerator",
    "StaticGenerator",
    "mc",
    "mc_record",
    "tf",
    "tf_record",
]
