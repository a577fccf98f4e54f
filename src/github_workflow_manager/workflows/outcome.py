"""Per-item failure containment.

Batch operations (building definitions, fanning out run lookups) must complete
even when single items fail. Each item is wrapped in `capture` / `capture_async`,
which logs the failure and substitutes a fallback value while keeping the
reason as a `Problem` that callers and tests can inspect.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Problem:
    """Why a single item degraded to its fallback value."""

    subject: str
    stage: str
    message: str
    error_type: str = ""

    @classmethod
    def from_exception(cls, *, subject: str, stage: str, error: BaseException) -> Problem:
        message = str(error) or error.__class__.__name__
        return cls(
            subject=subject, stage=stage, message=message, error_type=type(error).__name__
        )


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """A value that is always usable, plus the problem that produced it (if any)."""

    value: T
    problem: Problem | None = None

    @property
    def ok(self) -> bool:
        return self.problem is None


def capture(
    fn: Callable[[], T],
    *,
    subject: str,
    stage: str,
    fallback: Callable[[Problem], T],
) -> Outcome[T]:
    try:
        return Outcome(fn())
    except Exception as e:
        problem = Problem.from_exception(subject=subject, stage=stage, error=e)
        logger.warning(
            "%s failed for %s", stage, subject, extra={"subject": subject}, exc_info=True
        )
        return Outcome(fallback(problem), problem)


async def capture_async(
    awaitable: Awaitable[T],
    *,
    subject: str,
    stage: str,
    fallback: Callable[[Problem], T],
) -> Outcome[T]:
    try:
        return Outcome(await awaitable)
    except Exception as e:
        problem = Problem.from_exception(subject=subject, stage=stage, error=e)
        logger.warning(
            "%s failed for %s", stage, subject, extra={"subject": subject}, exc_info=True
        )
        return Outcome(fallback(problem), problem)


def problems_of(outcomes: Iterable[Outcome[object]]) -> list[Problem]:
    return [o.problem for o in outcomes if o.problem is not None]
