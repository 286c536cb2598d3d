"""Shared OpenAI client loader."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["load_client"]


def load_client(*, timeout: float | None = None) -> Any:
    """Initialize an OpenAI client using environment-derived credentials."""
    load_dotenv()
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError(
            "OPENAI_API_KEY not found in environment. Set it or add to .env"
        )
    if timeout is None:
        return OpenAI(api_key=api_key)
    return OpenAI(api_key=api_key, timeout=timeout)
