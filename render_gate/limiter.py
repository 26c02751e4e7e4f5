"""Render limiter — bounded admission with FIFO hand-off.

Caps how many renders run at once.  When every slot is taken, callers queue
up and are admitted strictly in arrival order: a released slot goes straight
to the oldest waiter, so a caller arriving later can never slip in between.

Usage::

    limiter = create_render_limiter(4)

    async with limiter.slot():
        await render_thumbnail(path)

    # or, when the release point is decided elsewhere
    slot = await limiter.acquire()
    try:
        await render_thumbnail(path)
    finally:
        slot.release()

All state lives on one event loop and is only touched between awaits, so no
lock is taken.  Do not share a limiter across loops or threads.
"""

from __future__ import annotations

import asyncio
import math
import numbers
from collections import deque
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, Callable, TypeVar

from render_gate.logging import get_logger, render_context

if TYPE_CHECKING:
    from render_gate.config import Settings

log = get_logger(__name__)

T = TypeVar("T")


def normalize_capacity(hint: object) -> int:
    """Turn a caller-supplied parallelism hint into a slot count >= 1.

    Non-numeric, non-finite and non-positive hints become 1; anything else
    is floored.  Never raises.
    """
    if isinstance(hint, bool) or not isinstance(hint, numbers.Real):
        return 1
    if isinstance(hint, numbers.Integral):
        return int(hint) if hint > 0 else 1
    if not math.isfinite(hint) or hint <= 0:
        return 1
    return max(1, math.floor(hint))


class RenderSlot:
    """A held slot.  Releasing it more than once has no further effect."""

    __slots__ = ("_limiter", "_released")

    def __init__(self, limiter: RenderLimiter) -> None:
        self._limiter = limiter
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            log.debug("render_slot_double_release", capacity=self._limiter.capacity)
            return
        self._released = True
        self._limiter._release()

    __call__ = release

    async def __aenter__(self) -> RenderSlot:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "held"
        return f"<RenderSlot {state}>"


class RenderLimiter:
    """Admission gate allowing at most ``capacity`` concurrent renders."""

    def __init__(self, capacity_hint: object = 1) -> None:
        self._capacity = normalize_capacity(capacity_hint)
        self._active = 0
        self._waiters: deque[asyncio.Future[None]] = deque()

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RenderLimiter:
        if settings is None:
            from render_gate.config import get_settings

            settings = get_settings()
        return cls(settings.limiter.max_parallel)

    @property
    def capacity(self) -> int:
        return self._capacity

    async def acquire(self) -> RenderSlot:
        """Wait for a free slot and return it.

        Returns immediately while the limiter is below capacity.  Otherwise
        the caller is queued and resumed once an earlier holder releases.
        """
        if self._active < self._capacity:
            self._active += 1
            return RenderSlot(self)

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        log.debug(
            "render_slot_queued",
            capacity=self._capacity,
            active=self._active,
            waiting=len(self._waiters),
        )
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was handed over before the cancellation landed.
                self._release()
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
            raise
        return RenderSlot(self)

    def _release(self) -> None:
        self._active = max(0, self._active - 1)

        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._active += 1
            waiter.set_result(None)
            log.debug(
                "render_slot_handoff",
                capacity=self._capacity,
                active=self._active,
                waiting=len(self._waiters),
            )
            return

    @asynccontextmanager
    async def slot(self, render_id: str | None = None) -> AsyncIterator[RenderSlot]:
        """Hold a slot for the duration of the ``async with`` block.

        With *render_id*, events logged while queued and while holding the
        slot are tagged with it.
        """
        with render_context(render_id):
            held = await self.acquire()
            try:
                yield held
            finally:
                held.release()

    async def run(
        self, func: Callable[..., Awaitable[T]], /, *args: Any, **kwargs: Any
    ) -> T:
        """Await ``func(*args, **kwargs)`` while holding a slot."""
        async with self.slot():
            return await func(*args, **kwargs)

    def get_active_count(self) -> int:
        return self._active

    def get_waiting_count(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    def status(self) -> dict[str, int]:
        """Return a snapshot of slot usage for monitoring."""
        return {
            "limit": self._capacity,
            "active": self._active,
            "available": max(0, self._capacity - self._active),
            "waiting": self.get_waiting_count(),
        }

    def __repr__(self) -> str:
        return (
            f"<RenderLimiter capacity={self._capacity} active={self._active} "
            f"waiting={self.get_waiting_count()}>"
        )


def create_render_limiter(capacity_hint: object) -> RenderLimiter:
    return RenderLimiter(capacity_hint)
