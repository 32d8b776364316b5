"""
In-memory play sessions.

A session owns one engine (string tables, asset base, callback queue), one
scene element and the runner mounted into it. Every request is one turn of
the event loop: under the session lock the virtual clock is advanced by the
wall time since the previous turn, the interaction is applied and the queue
is drained, so deferred resolutions and kind timers fire before the response
is built.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from typing import Any, Dict, List, Optional

from django.conf import settings

from .puzzles import Element, Engine, PuzzleResult, create_element, create_puzzle_runner
from .puzzles.kinds import ListPuzzle

logger = logging.getLogger(__name__)

POINTER_EVENTS = ("pointerdown", "pointermove", "pointerup")


class SessionNotFound(KeyError):
    """No live session with that id."""


class SessionResolved(RuntimeError):
    """The puzzle already reported its result; the session only accepts reads and delete."""


class TargetNotFound(LookupError):
    """The interaction target does not exist in the session's element tree."""


def build_engine(puzzles: Optional[Dict[str, Any]] = None) -> Engine:
    """Engine configured from ``settings.PUZZLE_ENGINE``."""
    conf = getattr(settings, "PUZZLE_ENGINE", {}) or {}
    return Engine(
        game_strings=conf.get("GAME_STRINGS"),
        engine_strings=conf.get("ENGINE_STRINGS"),
        asset_base=conf.get("ASSET_BASE_URL", ""),
        puzzles=puzzles,
        toast=lambda message, duration_ms: logger.info("toast (%d ms): %s", duration_ms, message),
    )


# PUBLIC_INTERFACE
class PlaySession:
    """One launched puzzle and its element tree."""

    def __init__(self, engine: Engine, runner, scene: Element):
        self.id = uuid.uuid4().hex
        self.engine = engine
        self.runner = runner
        self.scene = scene
        self.results: List[PuzzleResult] = []
        self.lock = threading.Lock()
        self._last_tick = time.monotonic()

    @property
    def result(self) -> Optional[PuzzleResult]:
        return self.results[0] if self.results else None

    @property
    def status(self) -> str:
        return self.runner.status

    def active_puzzle(self):
        """The innermost mounted puzzle (list kinds delegate to their current step)."""
        puzzle = self.runner.puzzle
        while isinstance(puzzle, ListPuzzle) and puzzle.runner is not None:
            puzzle = puzzle.runner.puzzle
        return puzzle

    def _tick(self) -> None:
        now = time.monotonic()
        elapsed_ms = int((now - self._last_tick) * 1000)
        self._last_tick = now
        self.engine.queue.advance(elapsed_ms)

    def _guard(self) -> None:
        if self.runner.resolved or self.status == "unmounted":
            raise SessionResolved("Puzzle already resolved.")

    def find(self, target: Optional[str] = None, selector: Optional[str] = None) -> Element:
        if selector:
            el = self.scene.query_selector(selector)
        elif target:
            el = self.scene.query_selector(f'[data-id="{target}"]')
        else:
            el = None
        if el is None:
            raise TargetNotFound(selector or target or "")
        return el

    # PUBLIC_INTERFACE
    def interact(
        self,
        event: str,
        target: Optional[str] = None,
        selector: Optional[str] = None,
        value: Optional[str] = None,
        key: Optional[str] = None,
        x: Optional[float] = None,
        y: Optional[float] = None,
        advance_ms: int = 0,
    ) -> None:
        """Dispatch one user interaction onto an element of the scene."""
        with self.lock:
            self._tick()
            self._guard()
            el = self.find(target, selector)
            if event == "click":
                el.click()
            elif event == "input":
                el.type_text("" if value is None else str(value))
            elif event == "keydown":
                el.press_key(key or "")
            elif event in POINTER_EVENTS:
                el.dispatch(event, x=x, y=y)
            else:
                el.dispatch(event, value=value, key=key, x=x, y=y)
            logger.debug("session %s %s on %s", self.id, event, selector or target)
            self.engine.queue.run_pending()
            if advance_ms:
                self.engine.queue.advance(advance_ms)

    # PUBLIC_INTERFACE
    def check(self) -> None:
        """Press OK on the active puzzle."""
        with self.lock:
            self._tick()
            self._guard()
            self.active_puzzle().check()
            self.engine.queue.run_pending()

    # PUBLIC_INTERFACE
    def cancel(self) -> None:
        """Press Cancel on the active puzzle (never held)."""
        with self.lock:
            self._tick()
            self._guard()
            self.active_puzzle().cancel()
            self.engine.queue.run_pending()

    def refresh(self) -> None:
        with self.lock:
            self._tick()

    def close(self) -> None:
        with self.lock:
            self.runner.unmount()
            self.engine.queue.run_pending()

    def to_dict(self, include_tree: bool = True) -> Dict[str, Any]:
        puzzle = self.runner.puzzle
        data: Dict[str, Any] = {
            "session_id": self.id,
            "puzzle_id": puzzle.id,
            "kind": puzzle.kind,
            "status": self.status,
            "held_count": self.runner.held_count,
            "result": self.result.to_dict() if self.result else None,
            "toasts": [message for message, _ in self.engine.toasts],
        }
        if include_tree:
            data["tree"] = self.scene.to_dict()
        return data


# PUBLIC_INTERFACE
class SessionStore:
    """Process-local session registry with oldest-first eviction."""

    def __init__(self, limit: int = 500):
        self.limit = limit
        self._sessions: "OrderedDict[str, PlaySession]" = OrderedDict()
        self._lock = threading.Lock()

    def start(
        self,
        puzzles: Dict[str, Any],
        config: Optional[Dict[str, Any]] = None,
        ref: Optional[str] = None,
        instance_options: Optional[Dict[str, Any]] = None,
        background: Optional[str] = None,
        rect: Optional[Dict[str, Any]] = None,
    ) -> PlaySession:
        """Create and mount a runner. Raises ``ConfigNotFoundError`` for unknown refs."""
        engine = build_engine(puzzles)
        scene = create_element("div", "scene")
        holder: List[PlaySession] = []

        def on_resolve(result: PuzzleResult) -> None:
            holder[0].results.append(result)
            logger.info("session %s resolved ok=%s", holder[0].id, result.ok)

        runner = create_puzzle_runner(
            config=config,
            ref=ref,
            puzzles_by_id=puzzles,
            instance_options=instance_options,
            engine=engine,
            on_resolve=on_resolve,
            rect=rect,
            background=background,
        )
        session = PlaySession(engine, runner, scene)
        holder.append(session)
        with session.lock:
            runner.mount_into(scene)
            engine.queue.run_pending()
        with self._lock:
            self._sessions[session.id] = session
            while len(self._sessions) > self.limit:
                evicted_id, evicted = self._sessions.popitem(last=False)
                evicted.close()
                logger.info("session %s evicted", evicted_id)
        logger.info("session %s started puzzle=%s kind=%s", session.id, runner.puzzle.id, runner.puzzle.kind)
        return session

    def get(self, session_id: str) -> PlaySession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session

    def discard(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFound(session_id)
        session.close()
        logger.info("session %s discarded", session_id)

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()

    def __len__(self) -> int:
        return len(self._sessions)


_store: Optional[SessionStore] = None
_store_lock = threading.Lock()


def get_store() -> SessionStore:
    """The process-wide store, created lazily from settings."""
    global _store
    with _store_lock:
        if _store is None:
            conf = getattr(settings, "PUZZLE_ENGINE", {}) or {}
            _store = SessionStore(limit=int(conf.get("SESSION_LIMIT", 500)))
        return _store
