"""
Cloze: fill the ``{gapN}`` placeholders of a text with tokens from a bank.

A gap holds at most one token and a token sits in at most one gap. Tokens are
placed by click (select in the bank, then click a gap) or by pointer drag; a
filled gap clicked with nothing selected returns its token to the bank.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from ..base import BasePuzzle
from ..dom import Element, Event, create_element
from ..layout import shuffled
from ..schema import PuzzleKind, PuzzleResult

logger = logging.getLogger(__name__)

GAP_PATTERN = re.compile(r"(\{gap\d+\})")


def split_gaps(text: str) -> List[str]:
    """Split text into literal chunks and ``{gapN}`` markers (empty chunks dropped)."""
    return [part for part in GAP_PATTERN.split(text or "") if part]


# PUBLIC_INTERFACE
class ClozePuzzle(BasePuzzle):
    """Correct when the gap -> token placement map equals ``solution`` exactly."""

    kind = PuzzleKind.CLOZE.value
    held_reset_ms = 800

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_els: Dict[str, Element] = {}
        self.gap_els: Dict[str, Element] = {}
        self.placements: Dict[str, str] = {}
        self.selected: Optional[str] = None
        self.bank: Optional[Element] = None
        self._dragging: Optional[str] = None

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-cloze")
        direction = self.layout.direction
        wrapper = create_element("div", "pz-cloze-container")
        wrapper.style.update({
            "flex": "1 1 auto",
            "display": "flex",
            "flex-direction": "row" if direction == "horizontal" else "column",
            "gap": "calc(var(--pz-token-gap) * 2)",
            "position": "relative",
        })
        wrapper.append_child(self._render_text())
        self.bank = self._render_bank()
        wrapper.append_child(self.bank)
        # Drops land wherever the pointer is released; the event bubbles up to here.
        self.listen(self.root, "pointerup", self._on_drop)
        self.insert_content(wrapper)
        logger.debug("cloze %s mounted gaps=%s", self.id, list(self.gap_els))

    def unmount(self) -> None:
        super().unmount()
        self.token_els = {}
        self.gap_els = {}
        self.placements = {}
        self.selected = None
        self._dragging = None
        self.bank = None

    def _render_text(self) -> Element:
        area = create_element("div", "pz-cloze-text-area")
        for part in split_gaps(self.t(self.config.text, "")):
            if GAP_PATTERN.fullmatch(part):
                gap_id = part[1:-1]
                gap = create_element("span", "pz-cloze-gap")
                gap.set_attribute("data-gap-id", gap_id)
                self.listen(gap, "click", lambda event, gid=gap_id: self._on_gap_click(event, gid))
                area.append_child(gap)
                self.gap_els[gap_id] = gap
            elif part.strip():
                span = create_element("span", "pz-cloze-text", part)
                span.style["white-space"] = "pre-wrap"
                area.append_child(span)
        return area

    def _render_bank(self) -> Element:
        bank = create_element("div", "pz-cloze-tokens-area")
        for token in shuffled(list(self.config.tokens), self.rng):
            el = self.create_token(token)
            el.set_attribute("data-token-id", token.id)
            el.style["cursor"] = "grab"
            self.listen(el, "click", lambda event, tid=token.id: self._on_token_click(event, tid))
            self.listen(el, "pointerdown", lambda event, tid=token.id: self._start_drag(tid))
            bank.append_child(el)
            self.token_els[token.id] = el
        return bank

    # --- placement --------------------------------------------------------------

    def gap_of(self, token_id: str) -> Optional[str]:
        for gap_id, placed in self.placements.items():
            if placed == token_id:
                return gap_id
        return None

    # PUBLIC_INTERFACE
    def place(self, token_id: str, gap_id: str) -> None:
        """Put a token into a gap; the gap's previous token and the token's previous gap are vacated."""
        gap = self.gap_els.get(gap_id)
        el = self.token_els.get(token_id)
        if gap is None or el is None:
            return
        previous = self.placements.get(gap_id)
        if previous is not None and previous != token_id:
            self.return_token(previous)
        old_gap = self.gap_of(token_id)
        if old_gap is not None and old_gap != gap_id:
            self._clear_gap(old_gap)
        self.placements[gap_id] = token_id
        gap.clear_children()
        gap.append_child(el)
        gap.class_list.add("filled")
        gap.class_list.remove("drag-over")
        el.class_list.remove("selected", "is-selected")
        self.mark(el, None)
        el.style.update({"background": "var(--pz-selected-bg)", "border-color": "var(--pz-selected-border)"})
        logger.debug("cloze %s place %s -> %s", self.id, token_id, gap_id)

    # PUBLIC_INTERFACE
    def return_token(self, token_id: str) -> None:
        """Send a token back to the bank, clearing whichever gap held it."""
        gap_id = self.gap_of(token_id)
        if gap_id is not None:
            self._clear_gap(gap_id)
        el = self.token_els.get(token_id)
        if el is None or self.bank is None:
            return
        el.style.pop("background", None)
        el.style.pop("border-color", None)
        self.mark(el, None)
        self.bank.append_child(el)

    def _clear_gap(self, gap_id: str) -> None:
        self.placements.pop(gap_id, None)
        gap = self.gap_els.get(gap_id)
        if gap is not None:
            gap.class_list.remove("filled")
            gap.clear_children()

    def _select(self, token_id: Optional[str]) -> None:
        if self.selected is not None and self.selected in self.token_els:
            self.token_els[self.selected].class_list.remove("selected", "is-selected")
        self.selected = token_id
        if token_id is not None:
            self.token_els[token_id].class_list.add("selected", "is-selected")

    def _on_token_click(self, event: Event, token_id: str) -> None:
        if self.gap_of(token_id) is not None:
            # Let the gap handle clicks on placed tokens.
            return
        event.stop_propagation()
        self._select(None if self.selected == token_id else token_id)

    def _on_gap_click(self, event: Event, gap_id: str) -> None:
        if self.selected is not None:
            token_id = self.selected
            self._select(None)
            self.place(token_id, gap_id)
        elif gap_id in self.placements:
            self.return_token(self.placements[gap_id])
            logger.debug("cloze %s gap %s cleared by click", self.id, gap_id)

    def _start_drag(self, token_id: str) -> None:
        self._dragging = token_id
        self.token_els[token_id].class_list.add("dragging")

    def _on_drop(self, event: Event) -> None:
        token_id = self._dragging
        if token_id is None:
            return
        self._dragging = None
        self.token_els[token_id].class_list.remove("dragging")
        target = event.target
        gap = target.closest(".pz-cloze-gap") if target is not None else None
        if gap is not None and gap.get_attribute("data-gap-id") in self.gap_els:
            self.place(token_id, gap.get_attribute("data-gap-id"))
        else:
            self.return_token(token_id)

    # PUBLIC_INTERFACE
    def drag(self, token_id: str, target: Element) -> None:
        """Drag a token and release it over ``target``."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        el.dispatch("pointerdown")
        target.dispatch("pointerup")

    # --- validation -------------------------------------------------------------

    def solution(self) -> Optional[Dict[str, str]]:
        raw = self.config.solution if self.config.solution is not None else self.config.solutions
        if not isinstance(raw, dict):
            return None
        return {str(k): str(v) for k, v in raw.items()}

    def validate(self) -> PuzzleResult:
        expected = self.solution()
        ok = expected is not None and self.placements == expected
        return PuzzleResult(ok=ok, value={"placements": dict(self.placements)})

    def _wrong_gaps(self) -> List[str]:
        expected = self.solution() or {}
        return [gap_id for gap_id, token_id in self.placements.items() if expected.get(gap_id) != token_id]

    def show_feedback(self, result: PuzzleResult) -> None:
        wrong = set(self._wrong_gaps())
        for gap_id, token_id in self.placements.items():
            el = self.token_els.get(token_id)
            if gap_id in wrong:
                self.mark(el, "wrong")
                el.style.update({"background": "var(--pz-wrong-bg)", "border-color": "var(--pz-wrong-border)"})
            else:
                self.mark(el, "correct")
                el.style.update({"background": "var(--pz-correct-bg)", "border-color": "var(--pz-correct-border)"})

    def on_held(self, result: PuzzleResult) -> None:
        wrong = {gap_id: self.placements[gap_id] for gap_id in self._wrong_gaps()}

        def reset():
            for gap_id, token_id in wrong.items():
                if self.placements.get(gap_id) == token_id:
                    self.return_token(token_id)

        self.set_timeout(self.held_reset_ms, reset)
