"""Cancel-and-reschedule debouncing of suggestion recomputation."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

from termshell.core.logging.logger import get_logger

if TYPE_CHECKING:
    from termshell.suggestions.engine import SuggestionEngine
    from termshell.suggestions.models import SuggestionItem

logger = get_logger(__name__)

SuggestionListener = Callable[[str, list["SuggestionItem"]], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the returned handle cancels it."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay_s, callback)


class _ManualHandle:
    __slots__ = ("cancelled",)

    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual-time scheduler driven explicitly with ``advance``."""

    def __init__(self) -> None:
        self.now_ms = 0.0
        self._queue: list[tuple[float, int, _ManualHandle, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle()
        due = self.now_ms + round(delay_s * 1000, 6)
        heapq.heappush(self._queue, (due, next(self._sequence), handle, callback))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _due, _seq, handle, _cb in self._queue if not handle.cancelled)

    def advance(self, ms: float) -> int:
        """Move virtual time forward, running every callback that falls due."""
        target = self.now_ms + ms
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _seq, handle, callback = heapq.heappop(self._queue)
            self.now_ms = due
            if handle.cancelled:
                continue
            callback()
            fired += 1
        self.now_ms = target
        return fired


class DebouncedSuggester:
    """Recomputes suggestions once input has been quiet for ``delay_ms``.

    Each ``input_changed`` call cancels the pending timer before scheduling a
    new one, so at most one recomputation is outstanding.
    """

    def __init__(
        self,
        engine: SuggestionEngine,
        scheduler: Scheduler,
        *,
        delay_ms: int | None = None,
        listener: SuggestionListener | None = None,
    ) -> None:
        self.engine = engine
        self.scheduler = scheduler
        self.delay_ms = engine.settings.debounce_ms if delay_ms is None else delay_ms
        self.listener = listener
        self.latest: list[SuggestionItem] = []
        self._handle: TimerHandle | None = None
        self._pending_text: str | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def input_changed(self, text: str) -> None:
        self.cancel()
        self._pending_text = text
        if self.delay_ms <= 0:
            self.flush()
            return
        self._handle = self.scheduler.call_later(self.delay_ms / 1000, self._fire)

    def flush(self) -> list[SuggestionItem] | None:
        """Compute pending suggestions now; ``None`` when nothing is pending."""
        if self._pending_text is None:
            return None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        text, self._pending_text = self._pending_text, None
        return self._deliver(text)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_text = None

    def _fire(self) -> None:
        self._handle = None
        if self._pending_text is None:
            return
        text, self._pending_text = self._pending_text, None
        self._deliver(text)

    def _deliver(self, text: str) -> list[SuggestionItem]:
        items = self.engine.suggest(text)
        self.latest = items
        logger.debug("Delivering suggestions", query=text, count=len(items))
        if self.listener is not None:
            self.listener(text, items)
        return items
