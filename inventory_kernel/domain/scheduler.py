"""
Scheduler -- cancellable delayed-callback abstraction.

Responsibility:
    Debounced lookups need "run this in N seconds unless cancelled first".
    Components receive a Scheduler by constructor injection, the same way
    they receive a Clock, so tests can drive time explicitly.

Architecture position:
    Kernel > Domain.  ``AsyncioScheduler`` is the production binding onto the
    running event loop; ``ManualScheduler`` is the deterministic test double.

Invariants enforced:
    - A cancelled call never runs.
    - A call runs at most once.
    - Callbacks may return an awaitable; it is awaited (manual) or spawned
      as a task (asyncio) so async work can follow a timer.

Failure modes:
    - ``AsyncioScheduler.call_later`` raises RuntimeError when no event loop
      is running.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

ScheduledCallback = Callable[[], Awaitable[None] | None]


class ScheduledCall(ABC):
    """Handle for a pending delayed callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Idempotent."""
        ...

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        ...


class Scheduler(ABC):
    """Schedules callbacks to run after a delay (seconds)."""

    @abstractmethod
    def call_later(self, delay: float, callback: ScheduledCallback) -> ScheduledCall:
        ...


# ---------------------------------------------------------------------------
# asyncio binding
# ---------------------------------------------------------------------------


class _AsyncioCall(ScheduledCall):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Production scheduler bound to the running asyncio loop.

    Awaitables returned by callbacks are wrapped in tasks; references are
    kept until completion so they are not garbage-collected mid-flight.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    def call_later(self, delay: float, callback: ScheduledCallback) -> ScheduledCall:
        loop = asyncio.get_running_loop()
        handle = loop.call_later(delay, self._run, callback)
        return _AsyncioCall(handle)

    def _run(self, callback: ScheduledCallback) -> None:
        result = callback()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)


# ---------------------------------------------------------------------------
# Deterministic test binding
# ---------------------------------------------------------------------------


@dataclass
class _ManualCall(ScheduledCall):
    due: float
    seq: int
    callback: ScheduledCallback
    _cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass
class ManualScheduler(Scheduler):
    """
    Scheduler whose time only moves when ``advance()`` is awaited.

    Due callbacks run in (due time, scheduling order); awaitables they
    return are awaited before the next callback runs.
    """

    now: float = 0.0
    _pending: list[_ManualCall] = field(default_factory=list)
    _seq: int = 0

    def call_later(self, delay: float, callback: ScheduledCallback) -> ScheduledCall:
        self._seq += 1
        call = _ManualCall(due=self.now + delay, seq=self._seq, callback=callback)
        self._pending.append(call)
        return call

    @property
    def pending_count(self) -> int:
        return sum(1 for c in self._pending if not c.cancelled and not c.fired)

    async def advance(self, seconds: float) -> int:
        """Move time forward, run every due callback, return how many ran."""
        self.now += seconds
        ran = 0
        while True:
            due = sorted(
                (c for c in self._pending
                 if not c.cancelled and not c.fired and c.due <= self.now),
                key=lambda c: (c.due, c.seq),
            )
            if not due:
                break
            call = due[0]
            call.fired = True
            ran += 1
            result = call.callback()
            if inspect.isawaitable(result):
                await result
        self._pending = [c for c in self._pending if not c.cancelled and not c.fired]
        return ran
