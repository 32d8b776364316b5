from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from ..base import BasePuzzle
from ..dom import Element
from ..schema import PuzzleKind, PuzzleResult, as_id_list

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class QuizPuzzle(BasePuzzle):
    """Selectable tokens; correct when the selected id set equals the solution set."""

    kind = PuzzleKind.QUIZ.value
    reset_delay_ms = 300

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_els: Dict[str, Element] = {}
        self.selected: List[str] = []

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-quiz")
        area = self.create_token_area()
        for token in self.config.tokens:
            el = self.create_token(token)
            self.listen(el, "click", lambda event, tid=token.id: self.toggle(tid))
            area.append_child(el)
            self.token_els[token.id] = el
        self.insert_content(area)

    def unmount(self) -> None:
        super().unmount()
        self.token_els = {}
        self.selected = []

    # PUBLIC_INTERFACE
    def toggle(self, token_id: str) -> None:
        """Select or deselect a token; single-select mode clears other selections first."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        was_selected = token_id in self.selected
        if not self.multi_select:
            self.clear_selection()
        if was_selected:
            if token_id in self.selected:
                self.selected.remove(token_id)
            el.class_list.remove("selected", "is-selected")
        else:
            self.selected.append(token_id)
            el.class_list.add("selected", "is-selected")
        logger.debug("quiz %s toggle %s -> %s", self.id, token_id, self.selected)

    def clear_selection(self) -> None:
        for token_id in self.selected:
            el = self.token_els.get(token_id)
            if el is not None:
                el.class_list.remove("selected", "is-selected")
        self.selected = []

    def solution_ids(self) -> Optional[Set[str]]:
        """Solution source order: solution_ids, solutions, tokens flagged ``correct``."""
        for source in (self.config.solution_ids, self.config.solutions):
            ids = as_id_list(source)
            if ids is not None:
                return set(ids)
        flagged = {t.id for t in self.config.tokens if t.correct}
        return flagged or None

    def validate(self) -> PuzzleResult:
        solution = self.solution_ids()
        chosen = set(self.selected)
        ok = solution is not None and chosen == solution
        return PuzzleResult(ok=ok, value={"selected_ids": list(self.selected)})

    def show_feedback(self, result: PuzzleResult, show_hints: bool = True) -> None:
        solution = self.solution_ids() or set()
        for token_id, el in self.token_els.items():
            is_selected = token_id in self.selected
            is_right = token_id in solution
            if is_selected:
                self.mark(el, "correct" if is_right else "wrong")
            elif is_right and show_hints:
                self.mark(el, "hint")
            else:
                self.mark(el, None)

    def on_held(self, result: PuzzleResult) -> None:
        if not self.options.reset_on_fail:
            return

        def reset():
            self.clear_selection()
            for el in self.token_els.values():
                self.mark(el, None)

        self.set_timeout(self.reset_delay_ms, reset)
