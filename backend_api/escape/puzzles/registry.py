from __future__ import annotations

import logging
from typing import Dict, List, Type

from .base import BasePuzzle
from .kinds import BUILTIN_KINDS

logger = logging.getLogger(__name__)


def _key(name) -> str:
    return str(getattr(name, "value", name) or "").strip().lower()


# PUBLIC_INTERFACE
class KindRegistry:
    """Registry mapping kind names to puzzle classes.

    Unknown names resolve to ``BasePuzzle`` (the inert fallback) instead of
    raising, so a bad ``kind`` in content degrades rather than crashes.
    """

    def __init__(self, kinds: Dict[str, Type[BasePuzzle]] = None):
        self._registry: Dict[str, Type[BasePuzzle]] = {}
        for name, implementation in (kinds or {}).items():
            self.register(name, implementation)

    @classmethod
    def with_builtins(cls) -> "KindRegistry":
        """A registry pre-populated with the nine built-in kinds."""
        return cls(BUILTIN_KINDS)

    # PUBLIC_INTERFACE
    def get(self, name) -> Type[BasePuzzle]:
        """Return the class for ``name``; ``BasePuzzle`` when not registered."""
        key = _key(name)
        implementation = self._registry.get(key)
        if implementation is None:
            logger.warning("Unknown puzzle kind %r, falling back to the base puzzle", name)
            return BasePuzzle
        return implementation

    # PUBLIC_INTERFACE
    def register(self, name, implementation: Type[BasePuzzle]) -> None:
        """Register or override the class for a kind. Last write wins."""
        key = _key(name)
        if not key:
            raise ValueError("kind name must be a non-empty string")
        if key in self._registry and self._registry[key] is not implementation:
            logger.info("Overriding puzzle kind %r", key)
        self._registry[key] = implementation

    def reset(self) -> None:
        """Restore the built-in table (tests use this between runs)."""
        self._registry = {}
        for name, implementation in BUILTIN_KINDS.items():
            self.register(name, implementation)

    def names(self) -> List[str]:
        return sorted(self._registry)

    def __contains__(self, name) -> bool:
        return _key(name) in self._registry


# Process-wide default, populated once at import.
registry = KindRegistry.with_builtins()


# PUBLIC_INTERFACE
def register_kind(name, implementation: Type[BasePuzzle]) -> None:
    """Register a kind on the process-wide registry."""
    registry.register(name, implementation)


# PUBLIC_INTERFACE
def get_kind(name) -> Type[BasePuzzle]:
    """Resolve a kind on the process-wide registry. Never raises."""
    return registry.get(name)
