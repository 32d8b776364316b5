"""
Puzzle runner: resolves a config, instantiates its kind, mounts it into a
wrapper element and decides which completions reach the host.

Hold policy: a correct result is always forwarded. A failed result is
forwarded unless ``block_until_solved`` is set, in which case it is swallowed
and the puzzle stays mounted for another attempt. Cancellation is never held.
Forwarded results go through ``engine.defer`` so the host callback never runs
inside the interaction handler that produced it.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .base import BasePuzzle
from .dom import Element, create_element
from .engine import Engine
from .layout import FULL_RECT, rect_to_style
from .registry import KindRegistry, registry as default_registry
from .schema import PuzzleConfig, PuzzleResult, Rect

logger = logging.getLogger(__name__)

ResolveCallback = Callable[[PuzzleResult], None]


# PUBLIC_INTERFACE
class ConfigNotFoundError(LookupError):
    """Raised when neither a config nor a resolvable reference was supplied."""

    def __init__(self, ref: Optional[str] = None):
        self.ref = ref
        super().__init__(f"Puzzle config not found (ref='{ref or ''}')")


def index_puzzles(puzzles_by_id: Any) -> Dict[str, Any]:
    """Accept a mapping of id -> config or a list of configs carrying ``id``."""
    if puzzles_by_id is None:
        return {}
    if isinstance(puzzles_by_id, Mapping):
        return dict(puzzles_by_id)
    table: Dict[str, Any] = {}
    for entry in puzzles_by_id:
        entry_id = entry.get("id") if isinstance(entry, Mapping) else getattr(entry, "id", None)
        if entry_id is not None:
            table[str(entry_id)] = entry
    return table


# PUBLIC_INTERFACE
class PuzzleRunner:
    """Owns one puzzle instance and its wrapper element.

    Attributes:
        puzzle: the kind instance (for introspection and tests)
        status: idle | mounted | held | resolved | unmounted
        held_count: number of swallowed failures
        result: the forwarded result, once there is one
    """

    def __init__(
        self,
        puzzle: BasePuzzle,
        engine: Any,
        on_resolve: Optional[ResolveCallback] = None,
        rect: Optional[Rect] = None,
    ):
        self.puzzle = puzzle
        self.engine = engine
        self.on_resolve = on_resolve
        self.rect = rect or FULL_RECT
        self.status = "idle"
        self.held_count = 0
        self.result: Optional[PuzzleResult] = None
        self._resolved = False
        self.container: Optional[Element] = None

        wrapper = create_element("div", "pz-container")
        wrapper.style.update({"position": "absolute", "pointer-events": "auto", "z-index": "8000"})
        wrapper.style.update(rect_to_style(self.rect))
        self.wrapper = wrapper
        puzzle.bind(self._on_complete)

    @property
    def resolved(self) -> bool:
        return self._resolved

    # PUBLIC_INTERFACE
    def mount_into(self, container: Element) -> None:
        """Append the wrapper to ``container`` and render the puzzle inside it."""
        container.append_child(self.wrapper)
        self.container = container
        if self.status == "idle":
            self.status = "mounted"
        logger.debug("runner mount id=%s kind=%s", self.puzzle.id, self.puzzle.kind)
        self.puzzle.mount(self.wrapper)

    # PUBLIC_INTERFACE
    def unmount(self) -> None:
        """Tear the puzzle down and detach the wrapper. Safe to call repeatedly."""
        self.puzzle.unmount()
        self.wrapper.remove()
        self.container = None
        if self.status != "unmounted":
            logger.debug("runner unmount id=%s", self.puzzle.id)
        self.status = "unmounted"

    def _on_complete(self, result: PuzzleResult, cancelled: bool = False) -> None:
        if self._resolved:
            logger.debug("runner id=%s ignoring completion after resolution", self.puzzle.id)
            return
        if not result.ok and not cancelled and self.puzzle.options.block_until_solved:
            self.held_count += 1
            self.status = "held"
            logger.debug("runner id=%s held failed result (%d)", self.puzzle.id, self.held_count)
            self.puzzle.on_held(result)
            return
        self._resolved = True
        self.result = result
        if self.status != "unmounted":
            self.status = "resolved"
        logger.debug("runner id=%s resolved ok=%s cancelled=%s", self.puzzle.id, result.ok, cancelled)
        if self.on_resolve is None:
            return
        callback = self.on_resolve
        defer = getattr(self.engine, "defer", None)
        if defer is None:
            callback(result)
        else:
            defer(lambda: callback(result))


# PUBLIC_INTERFACE
def create_puzzle_runner(
    config: Any = None,
    ref: Optional[str] = None,
    puzzles_by_id: Any = None,
    instance_options: Any = None,
    engine: Any = None,
    on_resolve: Optional[ResolveCallback] = None,
    rect: Any = None,
    background: Optional[str] = None,
    registry: Optional[KindRegistry] = None,
) -> PuzzleRunner:
    """Build a runner for an inline ``config`` or a ``ref`` into ``puzzles_by_id``.

    Parameters:
        config: descriptor mapping (or PuzzleConfig); takes precedence over ``ref``
        ref: puzzle id looked up in ``puzzles_by_id`` (falls back to ``engine.puzzles``)
        instance_options: per-launch options (block_until_solved, ...)
        engine: host engine; a default ``Engine`` is created when omitted
        on_resolve: host callback receiving the forwarded ``PuzzleResult``
        rect: placement of the runner's wrapper inside the host container
        background: image shown behind the puzzle window
        registry: kind registry; the process-wide one by default

    Raises:
        ConfigNotFoundError: when no config is given and ``ref`` does not resolve,
            or when a list step refers to a config the table does not hold.
    """
    table = index_puzzles(puzzles_by_id)
    if engine is None:
        engine = Engine(puzzles=table)
    if not table:
        table = index_puzzles(getattr(engine, "puzzles", None))

    if config is None and ref:
        config = table.get(str(ref))
    if config is None:
        logger.warning("Puzzle config not found (ref=%r)", ref)
        raise ConfigNotFoundError(ref)

    parsed = PuzzleConfig.from_dict(config)
    kinds = registry or default_registry
    implementation = kinds.get(parsed.kind)
    puzzle = implementation(engine=engine, puzzle_id=ref or parsed.id or "inline")
    puzzle.configure(parsed, instance_options)
    puzzle.background = background
    puzzle.puzzles_by_id = table
    missing = puzzle.unresolved_refs()
    if missing:
        logger.warning("Puzzle %s references unknown configs %r", puzzle.id, missing)
        raise ConfigNotFoundError(missing[0])
    logger.debug("runner created id=%s kind=%s", puzzle.id, puzzle.kind)
    return PuzzleRunner(puzzle, engine, on_resolve=on_resolve, rect=Rect.from_value(rect, FULL_RECT))
