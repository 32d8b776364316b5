"""
Pair matching.

``columns`` mode (default): left and right columns; click a token, then its
partner on the other side. ``dragdrop`` mode: every token starts at a
scattered, non-overlapping spot on a free-form board; dragging a token onto
another one pairs them. In both modes clicking a paired token unpairs it.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional, Set

from ..base import BasePuzzle
from ..dom import Element, Event, create_element
from ..layout import Position, parse_pct, pct, scatter_positions, shuffled
from ..schema import PuzzleKind, PuzzleResult, Token

logger = logging.getLogger(__name__)

PAIR_COLORS = (
    "rgba(155, 89, 182, 0.35)",
    "rgba(26, 188, 156, 0.35)",
    "rgba(230, 126, 34, 0.35)",
    "rgba(241, 196, 15, 0.35)",
    "rgba(219, 10, 172, 0.35)",
    "rgba(46, 204, 113, 0.35)",
    "rgba(52, 73, 94, 0.50)",
    "rgba(166, 219, 10, 0.35)",
    "rgba(139, 69, 19, 0.40)",
    "rgba(0, 128, 128, 0.35)",
    "rgba(128, 0, 128, 0.35)",
    "rgba(255, 20, 147, 0.35)",
)

# Token footprint on the dragdrop board, in percent of the board.
TOKEN_WIDTH = 14.0
TOKEN_HEIGHT = 8.0

COLUMNS = "columns"
DRAGDROP = "dragdrop"


def pair_color(index: int) -> str:
    return PAIR_COLORS[index % len(PAIR_COLORS)]


# PUBLIC_INTERFACE
class MatchPuzzle(BasePuzzle):
    """Pair tokens; correct when the realized pairs equal the solution pairs."""

    kind = PuzzleKind.MATCH.value
    held_reset_ms = 800

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_els: Dict[str, Element] = {}
        self.sides: Dict[str, str] = {}
        self.pairs: Dict[str, str] = {}
        self.pair_index: Dict[str, int] = {}
        self.selected: Optional[str] = None
        self.positions: Dict[str, Position] = {}
        self.board: Optional[Element] = None
        self.lines: Optional[Element] = None
        self._dragging: Optional[str] = None

    @property
    def mode(self) -> str:
        return DRAGDROP if (self.config.mode or COLUMNS) == DRAGDROP else COLUMNS

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-match", f"pz-match--{self.mode}")
        if self.mode == DRAGDROP:
            self._mount_board()
        else:
            self._mount_columns()
        logger.debug("match %s mounted mode=%s tokens=%d", self.id, self.mode, len(self.token_els))

    def unmount(self) -> None:
        super().unmount()
        self.token_els = {}
        self.pairs = {}
        self.pair_index = {}
        self.positions = {}
        self.selected = None
        self._dragging = None
        self.board = self.lines = None

    def _mount_columns(self) -> None:
        direction = self.layout.direction
        wrapper = create_element("div", "pz-match-container")
        wrapper.style.update({
            "display": "grid",
            "position": "relative",
            "grid-template-columns": "1fr" if direction == "horizontal" else "1fr 1fr",
            "grid-template-rows": "1fr 1fr" if direction == "horizontal" else "1fr",
        })
        columns = {
            "left": create_element("div", "pz-match-column pz-match-column--left"),
            "right": create_element("div", "pz-match-column pz-match-column--right"),
        }
        by_side: Dict[str, List[Token]] = {"left": [], "right": []}
        for token in self.config.tokens:
            by_side["right" if token.side == "right" else "left"].append(token)
        for side, column in columns.items():
            for token in shuffled(by_side[side], self.rng):
                el = self._make_token(token, side)
                column.append_child(el)
            wrapper.append_child(column)
        self.lines = create_element("div", "pz-match-lines")
        self.lines.style.update({"position": "absolute", "inset": "0", "pointer-events": "none"})
        wrapper.append_child(self.lines)
        self.insert_content(wrapper)

    def _mount_board(self) -> None:
        board = create_element("div", "pz-match-board")
        board.style.update({"position": "relative", "flex": "1 1 auto"})
        tokens = list(self.config.tokens)
        positions = scatter_positions(len(tokens), self.rng)
        for token, position in zip(tokens, positions):
            side = token.side or "left"
            el = self._make_token(token, side)
            if token.side:
                el.class_list.add(f"pz-match-token--{token.side}")
            self._place(token.id, el, position)
            board.append_child(el)
            self.listen(el, "pointerdown", lambda event, tid=token.id: self._start_drag(tid))
        self.listen(board, "pointermove", self._on_drag_move)
        self.listen(board, "pointerup", self._on_drag_end)
        self.board = board
        self.insert_content(board)

    def _make_token(self, token: Token, side: str) -> Element:
        el = self.create_token(token)
        self.sides[token.id] = side
        self.token_els[token.id] = el
        self.listen(el, "click", lambda event, tid=token.id: self.select(tid))
        return el

    def _place(self, token_id: str, el: Element, position: Position) -> None:
        self.positions[token_id] = position
        el.style.update({
            "position": "absolute",
            "left": pct(position.x),
            "top": pct(position.y),
            "transform": "translate(-50%, -50%)",
        })

    # --- click pairing --------------------------------------------------------

    # PUBLIC_INTERFACE
    def select(self, token_id: str) -> None:
        """Click handling: unpair, select, deselect, reselect on same side, or pair."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        self.mark(el, None)

        if token_id in self.pairs:
            self.unpair(token_id)
            return

        if self.selected is None:
            self.selected = token_id
            el.class_list.add("selected", "is-selected")
            return

        if self.selected == token_id:
            self.selected = None
            el.class_list.remove("selected", "is-selected")
            return

        first = self.selected
        if self.mode == COLUMNS and self.sides.get(first) == self.sides.get(token_id):
            self.token_els[first].class_list.remove("selected", "is-selected")
            self.selected = token_id
            el.class_list.add("selected", "is-selected")
            return

        self.selected = None
        self.pair(first, token_id)

    # PUBLIC_INTERFACE
    def pair(self, first: str, second: str) -> int:
        """Pair two tokens (breaking their previous pairs) and tag them with a shared index."""
        for token_id in (first, second):
            if token_id in self.pairs:
                self.unpair(token_id)
        index = self._next_pair_index()
        self.pairs[first] = second
        self.pairs[second] = first
        color = pair_color(index)
        for token_id in (first, second):
            self.pair_index[token_id] = index
            token_el = self.token_els[token_id]
            token_el.class_list.remove("selected", "is-selected")
            token_el.style["background"] = color
            token_el.dataset["pair-index"] = str(index)
        if self.lines is not None:
            line = create_element("div", "pz-match-line")
            line.dataset.update({"from": first, "to": second, "pair-index": str(index)})
            line.style["stroke"] = color
            self.lines.append_child(line)
        logger.debug("match %s paired %s<->%s index=%d", self.id, first, second, index)
        return index

    # PUBLIC_INTERFACE
    def unpair(self, token_id: str) -> Optional[str]:
        """Break the pair containing ``token_id``; returns the former partner."""
        partner = self.pairs.pop(token_id, None)
        if partner is None:
            return None
        self.pairs.pop(partner, None)
        for tid in (token_id, partner):
            self.pair_index.pop(tid, None)
            token_el = self.token_els.get(tid)
            if token_el is not None:
                token_el.style.pop("background", None)
                token_el.dataset.pop("pair-index", None)
                token_el.class_list.remove("selected", "is-selected")
                self.mark(token_el, None)
        if self.lines is not None:
            for line in self.lines.query_selector_all(".pz-match-line"):
                if {line.dataset.get("from"), line.dataset.get("to")} == {token_id, partner}:
                    line.remove()
        logger.debug("match %s unpaired %s<->%s", self.id, token_id, partner)
        return partner

    def _next_pair_index(self) -> int:
        used = set(self.pair_index.values())
        index = 0
        while index in used:
            index += 1
        return index

    # --- drag and drop ------------------------------------------------------

    def _start_drag(self, token_id: str) -> None:
        self._dragging = token_id
        el = self.token_els.get(token_id)
        if el is not None:
            el.class_list.add("is-dragging")

    def _on_drag_move(self, event: Event) -> None:
        x, y = event.get("x"), event.get("y")
        if self._dragging is None or x is None or y is None:
            return
        x = min(100.0, max(0.0, float(x)))
        y = min(100.0, max(0.0, float(y)))
        self._place(self._dragging, self.token_els[self._dragging], Position(x, y))

    def _on_drag_end(self, event: Event) -> None:
        token_id = self._dragging
        if token_id is None:
            return
        self._on_drag_move(event)
        self._dragging = None
        el = self.token_els[token_id]
        el.class_list.remove("is-dragging")
        # A dropped token always leaves its old pair, even when it lands on empty space.
        self.unpair(token_id)
        target = self.token_at(self.positions[token_id], exclude=token_id)
        if target is not None:
            self.pair(token_id, target)

    def token_at(self, point: Position, exclude: Optional[str] = None) -> Optional[str]:
        """Hit test: the token whose footprint contains ``point``."""
        for token_id, position in self.positions.items():
            if token_id == exclude:
                continue
            if abs(point.x - position.x) <= TOKEN_WIDTH / 2 and abs(point.y - position.y) <= TOKEN_HEIGHT / 2:
                return token_id
        return None

    # PUBLIC_INTERFACE
    def drag(self, token_id: str, x: float, y: float) -> None:
        """Drag a token to board coordinates (percent) and drop it there."""
        el = self.token_els.get(token_id)
        if el is None or self.board is None:
            return
        el.dispatch("pointerdown", x=parse_pct(el.style.get("left")), y=parse_pct(el.style.get("top")))
        self.board.dispatch("pointermove", x=x, y=y)
        self.board.dispatch("pointerup", x=x, y=y)

    # --- validation -----------------------------------------------------------

    def solution_pairs(self) -> Optional[Set[FrozenSet[str]]]:
        raw = self.config.solutions if self.config.solutions is not None else self.config.pairs
        if isinstance(raw, dict):
            return {frozenset((str(a), str(b))) for a, b in raw.items()}
        if isinstance(raw, (list, tuple)):
            pairs = set()
            for item in raw:
                if isinstance(item, (list, tuple)) and len(item) == 2:
                    pairs.add(frozenset((str(item[0]), str(item[1]))))
            return pairs
        return None

    def realized_pairs(self) -> Set[FrozenSet[str]]:
        return {frozenset((a, b)) for a, b in self.pairs.items()}

    def validate(self) -> PuzzleResult:
        expected = self.solution_pairs()
        ok = expected is not None and self.realized_pairs() == expected
        return PuzzleResult(ok=ok, value={"pairs": dict(self.pairs)})

    def _expected_partner(self, expected: Set[FrozenSet[str]], token_id: str) -> Optional[str]:
        for pair in expected:
            if token_id in pair and len(pair) == 2:
                return next(iter(pair - {token_id}))
        return None

    def show_feedback(self, result: PuzzleResult) -> None:
        expected = self.solution_pairs() or set()
        for token_id, el in self.token_els.items():
            partner = self.pairs.get(token_id)
            good = partner == self._expected_partner(expected, token_id)
            if good and partner is not None:
                self.mark(el, "correct")
            elif not good:
                self.mark(el, "wrong")

    def on_held(self, result: PuzzleResult) -> None:
        expected = self.solution_pairs() or set()

        def reset():
            for token_id in list(self.pairs):
                if token_id in self.pairs and frozenset((token_id, self.pairs[token_id])) not in expected:
                    self.unpair(token_id)
            for el in self.token_els.values():
                if el.class_list.contains("is-wrong"):
                    self.mark(el, None)

        self.set_timeout(self.held_reset_ms, reset)
