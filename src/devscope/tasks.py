"""Fan-out/fan-in join with per-task error isolation."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .errors import AnalysisError

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Result of one joined task: a value or the ``AnalysisError`` it raised."""

    value: T | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the task's error if it failed."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def join(*aws: Awaitable[Any]) -> list[Outcome[Any]]:
    """Run ``aws`` concurrently and wait for every one of them.

    A task failing with ``AnalysisError`` does not affect its siblings; the
    error is captured in that task's ``Outcome``. Any other exception is a
    bug and is re-raised once all tasks have finished.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)

    outcomes: list[Outcome[Any]] = []
    for result in results:
        if isinstance(result, AnalysisError):
            outcomes.append(Outcome(error=result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcomes.append(Outcome(value=result))
    return outcomes
