"""Focus-loss detection for running quizzes."""

from __future__ import annotations

import logging
from typing import Callable

from .events import IntegrityViolation, QuizEvent

__all__ = [
    "FocusSignal",
    "IntegrityWatchdog",
    "Subscription",
]

logger = logging.getLogger(__name__)

FocusCallback = Callable[[], None]


class Subscription:
    """Handle returned by :meth:`FocusSignal.subscribe`."""

    def __init__(self, signal: "FocusSignal", callback: FocusCallback) -> None:
        self._signal = signal
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        self._signal._remove(self._callback)


class FocusSignal:
    """Event source for "window hidden / focus lost" notifications.

    The presentation layer calls :meth:`emit` whenever visibility changes;
    subscribers only hear about the hidden transitions.
    """

    def __init__(self) -> None:
        self._callbacks: list[FocusCallback] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: FocusCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def emit(self, hidden: bool) -> None:
        if not hidden:
            return
        for callback in tuple(self._callbacks):
            callback()

    def _remove(self, callback: FocusCallback) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass


class IntegrityWatchdog:
    """Turns focus loss into :class:`IntegrityViolation` messages.

    Only delivers while armed. The controller arms it when a quiz starts and
    disarms it on every way out of the running phase.
    """

    def __init__(
        self, signal: FocusSignal, deliver: Callable[[QuizEvent], object]
    ) -> None:
        self._signal = signal
        self._deliver = deliver
        self._subscription: Subscription | None = None

    @property
    def armed(self) -> bool:
        return self._subscription is not None

    def arm(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = self._signal.subscribe(self._on_hidden)

    def disarm(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

    def _on_hidden(self) -> None:
        if self._subscription is None:
            return
        logger.info("Focus lost during quiz", extra={"event": "focus_lost"})
        self._deliver(IntegrityViolation())
