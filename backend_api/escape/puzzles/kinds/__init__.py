"""
Built-in puzzle kinds.

Each module holds one ``BasePuzzle`` subclass; ``BUILTIN_KINDS`` is the
dispatch table the kind registry is initialized from.
"""

from typing import Dict, Type

from ..base import BasePuzzle
from ..schema import PuzzleKind
from .choice import ChoicePuzzle
from .cloze import ClozePuzzle
from .code import CodePuzzle
from .group import GroupPuzzle
from .list import ListPuzzle
from .match import MatchPuzzle
from .order import OrderPuzzle
from .phrase import PhrasePuzzle
from .quiz import QuizPuzzle

BUILTIN_KINDS: Dict[PuzzleKind, Type[BasePuzzle]] = {
    PuzzleKind.PHRASE: PhrasePuzzle,
    PuzzleKind.CODE: CodePuzzle,
    PuzzleKind.QUIZ: QuizPuzzle,
    PuzzleKind.ORDER: OrderPuzzle,
    PuzzleKind.MATCH: MatchPuzzle,
    PuzzleKind.GROUP: GroupPuzzle,
    PuzzleKind.CHOICE: ChoicePuzzle,
    PuzzleKind.LIST: ListPuzzle,
    PuzzleKind.CLOZE: ClozePuzzle,
}

__all__ = [
    "BUILTIN_KINDS",
    "ChoicePuzzle",
    "ClozePuzzle",
    "CodePuzzle",
    "GroupPuzzle",
    "ListPuzzle",
    "MatchPuzzle",
    "OrderPuzzle",
    "PhrasePuzzle",
    "QuizPuzzle",
]
