from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..base import BasePuzzle
from ..dom import Element, create_element
from ..layout import shuffled
from ..schema import PuzzleKind, PuzzleResult, as_id_list

logger = logging.getLogger(__name__)


def _area_style(direction: str) -> Dict[str, str]:
    horizontal = direction == "horizontal"
    return {
        "display": "flex",
        "flex-direction": "row" if horizontal else "column",
        "flex-wrap": "wrap" if horizontal else "nowrap",
        "gap": "var(--pz-token-gap)",
    }


# PUBLIC_INTERFACE
class OrderPuzzle(BasePuzzle):
    """Click tokens from a shuffled pool into an ordered target sequence."""

    kind = PuzzleKind.ORDER.value

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_els: Dict[str, Element] = {}
        self.ordered: List[str] = []
        self.shuffled_ids: List[str] = []
        self.pool_area: Optional[Element] = None
        self.ordered_area: Optional[Element] = None

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-order")
        direction = self.layout.direction
        wrapper = create_element("div", "pz-order-container")
        wrapper.style.update({
            "display": "grid",
            "grid-template-columns": "1fr" if direction == "horizontal" else "1fr 1fr",
            "grid-template-rows": "1fr 1fr" if direction == "horizontal" else "1fr",
        })
        self.pool_area = create_element("div", "pz-area pz-area-shuffled")
        self.ordered_area = create_element("div", "pz-area pz-area-ordered")
        for area in (self.pool_area, self.ordered_area):
            area.style.update(_area_style(direction))
            wrapper.append_child(area)

        self.shuffled_ids = shuffled([t.id for t in self.config.tokens], self.rng)
        for token_id in self.shuffled_ids:
            el = self.create_token(self.config.token(token_id))
            self.listen(el, "click", lambda event, tid=token_id: self.toggle(tid))
            self.pool_area.append_child(el)
            self.token_els[token_id] = el
        self.insert_content(wrapper)

    def unmount(self) -> None:
        super().unmount()
        self.token_els = {}
        self.ordered = []
        self.pool_area = self.ordered_area = None

    # PUBLIC_INTERFACE
    def toggle(self, token_id: str) -> None:
        """Pool tokens go to the end of the sequence; sequenced tokens go back to the pool."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        if token_id in self.ordered:
            self.ordered.remove(token_id)
            self.pool_area.append_child(el)
        else:
            self.ordered.append(token_id)
            self.ordered_area.append_child(el)
        for token_el in self.token_els.values():
            self.mark(token_el, None)
        logger.debug("order %s sequence=%s", self.id, self.ordered)

    def solution(self) -> Optional[List[str]]:
        for source in (self.config.solutions, self.config.solution, self.config.solution_ids):
            if isinstance(source, (list, tuple)):
                return as_id_list(source)
        return None

    def validate(self) -> PuzzleResult:
        want = self.solution()
        ok = want is not None and self.ordered == want
        return PuzzleResult(ok=ok, value={"ordered_ids": list(self.ordered)})

    def show_feedback(self, result: PuzzleResult) -> None:
        want = self.solution() or []
        for index, token_id in enumerate(self.ordered):
            good = index < len(want) and want[index] == token_id
            self.mark(self.token_els.get(token_id), "correct" if good else "wrong")
        for token_id in want:
            if token_id not in self.ordered:
                self.mark(self.token_els.get(token_id), "hint")
