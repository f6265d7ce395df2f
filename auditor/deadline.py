"""
Generic deadline combinator shared by every check.

with_deadline() races an awaitable against a timer. On expiry the caller gets
a timed-out DeadlineResult; the underlying task is NOT cancelled and may run
to completion in the background, its outcome discarded.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Generic, Optional, TypeVar

T = TypeVar("T")

logger = logging.getLogger("auditor.deadline")


@dataclass(frozen=True)
class DeadlineResult(Generic[T]):
    value: Optional[T] = None
    timed_out: bool = False
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.timed_out


def _discard_outcome(task: "asyncio.Future[Any]") -> None:
    # Retrieve the late exception so the loop does not report it as unhandled.
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"[DEADLINE] Discarded late failure: {exc!r}", extra={"context": "Deadline"})


async def with_deadline(awaitable: Awaitable[T], seconds: float) -> DeadlineResult[T]:
    """
    Await `awaitable` for at most `seconds`.
    Exceptions raised by the awaitable before the deadline propagate unchanged.
    """
    task = asyncio.ensure_future(awaitable)
    start = time.monotonic()
    done, _ = await asyncio.wait({task}, timeout=seconds)
    elapsed = time.monotonic() - start

    if task in done:
        return DeadlineResult(value=task.result(), timed_out=False, elapsed=elapsed)

    task.add_done_callback(_discard_outcome)
    return DeadlineResult(timed_out=True, elapsed=elapsed)
