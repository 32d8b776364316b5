"""
Puzzle framework for escape-room scenes.

Exports:
- KindRegistry, registry, register_kind and get_kind for resolving puzzle kinds
- create_puzzle_runner, PuzzleRunner and ConfigNotFoundError for launching puzzles
- BasePuzzle, the lifecycle contract (and inert fallback kind)
- Engine and CallbackQueue, the default host capabilities
- PuzzleConfig, InstanceOptions, PuzzleResult and PuzzleKind descriptor types

The package is framework-agnostic: it renders into its own element tree
(``dom.Element``) and never imports Django.
"""

from .base import BasePuzzle
from .dom import Element, create_element
from .engine import CallbackQueue, Engine
from .registry import KindRegistry, get_kind, register_kind, registry
from .runner import ConfigNotFoundError, PuzzleRunner, create_puzzle_runner
from .schema import InstanceOptions, PuzzleConfig, PuzzleKind, PuzzleResult

__all__ = [
    "BasePuzzle",
    "CallbackQueue",
    "ConfigNotFoundError",
    "Element",
    "Engine",
    "InstanceOptions",
    "KindRegistry",
    "PuzzleConfig",
    "PuzzleKind",
    "PuzzleResult",
    "PuzzleRunner",
    "create_element",
    "create_puzzle_runner",
    "get_kind",
    "register_kind",
    "registry",
]
