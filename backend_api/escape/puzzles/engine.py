"""
Host capabilities consumed by the puzzle framework.

The framework needs very little from its host: string resolution, asset path
resolution, a deferred callback queue (plus timers) and, optionally, a toast
sink and a puzzle lookup table. ``HostEngine`` documents that surface;
``Engine`` is the default in-process implementation used by the HTTP host and
the tests.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable

from .i18n import resolve_text, translate

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


@runtime_checkable
class HostEngine(Protocol):
    """Capabilities a host engine supplies to puzzles and runners."""

    puzzles: Mapping[str, Any]

    def resolve_string(self, key: str, fallback: str = "", params: Optional[Mapping[str, Any]] = None) -> str: ...

    def resolve_asset(self, path: str) -> str: ...

    def defer(self, callback: Callback) -> Any: ...

    def call_later(self, delay_ms: int, callback: Callback) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


@dataclass(order=True)
class TimerHandle:
    """A scheduled callback. Ordered by due time, then scheduling order."""

    due: int
    seq: int
    callback: Callback = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


# PUBLIC_INTERFACE
class CallbackQueue:
    """Single-threaded deferred-callback queue with a virtual millisecond clock.

    ``call_soon`` callbacks run on the next ``run_pending()``; ``call_later``
    callbacks run once ``advance()`` moves the clock past their due time.
    Callbacks scheduled while draining run in the same drain, in FIFO order.
    """

    def __init__(self):
        self.now = 0
        self._seq = itertools.count()
        self._heap: List[TimerHandle] = []

    def call_soon(self, callback: Callback) -> TimerHandle:
        return self.call_later(0, callback)

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        handle = TimerHandle(self.now + max(0, int(delay_ms)), next(self._seq), callback)
        heapq.heappush(self._heap, handle)
        return handle

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def pending(self) -> int:
        return sum(1 for h in self._heap if not h.cancelled)

    def run_pending(self) -> int:
        """Run every callback already due at the current clock. Returns how many ran."""
        ran = 0
        while self._heap and self._heap[0].due <= self.now:
            handle = heapq.heappop(self._heap)
            if handle.cancelled:
                continue
            handle.callback()
            ran += 1
        return ran

    def advance(self, ms: int) -> int:
        """Move the clock forward, running due callbacks in time order."""
        target = self.now + max(0, int(ms))
        ran = self.run_pending()
        while self._heap and self._heap[0].due <= target:
            self.now = self._heap[0].due
            ran += self.run_pending()
        self.now = target
        ran += self.run_pending()
        return ran


# PUBLIC_INTERFACE
class Engine:
    """Default host engine.

    Parameters:
        game_strings: game-specific string table (highest priority)
        engine_strings: engine default string table
        asset_base: prefix for relative asset paths
        puzzles: puzzle table (id -> config dict) used for reference lookups
        queue: deferred callback queue; a fresh one is created when omitted
        toast: optional callable(message, duration_ms) for transient notices
        rng: random source for shuffles and scattered layouts (seed it for replays)
    """

    def __init__(
        self,
        game_strings: Optional[Mapping[str, Any]] = None,
        engine_strings: Optional[Mapping[str, Any]] = None,
        asset_base: str = "",
        puzzles: Optional[Mapping[str, Any]] = None,
        queue: Optional[CallbackQueue] = None,
        toast: Optional[Callable[[str, int], None]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.i18n: Dict[str, Dict[str, Any]] = {
            "game": dict(game_strings or {}),
            "engine": dict(engine_strings or {}),
        }
        self.asset_base = asset_base or ""
        self.puzzles: Dict[str, Any] = dict(puzzles or {})
        self.queue = queue or CallbackQueue()
        self._toast = toast
        self.toasts: List[Tuple[str, int]] = []
        self.rng = rng or random.Random()

    # PUBLIC_INTERFACE
    def resolve_string(self, key: str, fallback: str = "", params: Optional[Mapping[str, Any]] = None) -> str:
        """Game table, then engine table, then the literal fallback; ``{name}`` substituted last."""
        return translate(self.i18n, key, fallback, params)

    def text(self, value: Any, fallback: str = "") -> str:
        """Resolve a display value that may be an ``@key@fallback`` string."""
        return resolve_text(self.resolve_string, value, fallback)

    # PUBLIC_INTERFACE
    def resolve_asset(self, path: str) -> str:
        """Pass absolute URLs through; prefix everything else with the asset base."""
        if not path:
            return path
        if path.startswith(("http://", "https://", "data:", "blob:", "/")):
            return path
        if not self.asset_base:
            return path
        if path.startswith("./"):
            path = path[2:]
        return self.asset_base.rstrip("/") + "/" + path

    def defer(self, callback: Callback) -> TimerHandle:
        return self.queue.call_soon(callback)

    def call_later(self, delay_ms: int, callback: Callback) -> TimerHandle:
        return self.queue.call_later(delay_ms, callback)

    def cancel(self, handle: Any) -> None:
        self.queue.cancel(handle)

    def toast(self, message: str, duration_ms: int = 2500) -> None:
        self.toasts.append((message, duration_ms))
        if self._toast is not None:
            self._toast(message, duration_ms)
        else:
            logger.info("toast: %s", message)
