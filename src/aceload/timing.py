"""
Nested timing log.

``TimingLog`` is an immutable value: each timed block hands a child log one
level deeper to its callback, so indentation follows the call structure
without shared mutable state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, TypeVar

T = TypeVar("T")

_INDENT = "  "


@dataclass(frozen=True)
class TimingLog:
    verbose: bool = False
    depth: int = 0
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("aceload"), compare=False
    )

    def nested(self) -> "TimingLog":
        return replace(self, depth=self.depth + 1)

    def prefix(self, msg: str) -> str:
        return _INDENT * self.depth + msg

    def say(self, msg: str, *args: Any) -> None:
        self.logger.info(self.prefix(msg), *args)

    def timed(self, msg: str, fn: Callable[["TimingLog"], T]) -> T:
        """Run ``fn`` with a child log and report how long it took."""
        child = self.nested()
        if self.verbose:
            child.say("%s ... starting", msg)
        started = time.perf_counter()
        try:
            result = fn(child)
        except Exception as exc:
            child.say(
                "%s ... failed (%.3fs): err=%s", msg, time.perf_counter() - started, exc
            )
            raise
        child.say("%s ... done (%.3fs)", msg, time.perf_counter() - started)
        return result

    def timed_v(self, msg: str, fn: Callable[["TimingLog"], T]) -> T:
        """Like :meth:`timed`, but only reports in verbose mode."""
        if self.verbose:
            return self.timed(msg, fn)
        return fn(self)
