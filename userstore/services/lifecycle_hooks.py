"""Lifecycle Hooks — ordered callback registry for session login/logout.

Invariants:
    - Callbacks run in registration order
    - A raising callback never prevents later callbacks in the same dispatch
    - Errors are logged with the hook name, never propagated

Design Decisions:
    - One policy for every hook kind (catch, log, continue)
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HookRegistry(Generic[T]):
    """Named list of callbacks taking one argument."""

    def __init__(self, name: str):
        self.name = name
        self._callbacks: list[Callable[[T], object]] = []

    def __len__(self) -> int:
        return len(self._callbacks)

    def register(self, callback: Callable[[T], object]) -> None:
        self._callbacks.append(callback)

    def remove(self, callback: Callable[[T], object]) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def dispatch(self, arg: T) -> int:
        """Run every callback with `arg`. Returns the number that raised."""
        failures = 0
        for callback in list(self._callbacks):
            try:
                callback(arg)
            except Exception as e:
                failures += 1
                logger.error(
                    "%s hook %r failed: %s", self.name,
                    getattr(callback, "__name__", callback), e,
                    exc_info=True, extra={"hook": self.name},
                )
        return failures
