"""
Group sorting: move tokens from a pool into labeled group areas.

Auto layout computes the board grid from the group count (see
``layout.grid_dimensions``) and recomputes it whenever the groups change;
manual layout positions each area by its own ``rect``. Tokens are assigned
by clicking (token, then area or pool) or by dragging them onto an area.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..base import BasePuzzle
from ..dom import Element, Event, create_element
from ..layout import grid_cells, grid_dimensions, rect_to_style
from ..schema import Group, PuzzleKind, PuzzleResult, Rect

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class GroupPuzzle(BasePuzzle):
    """Assign every token to a group; correct when the assignment map equals ``solutions``."""

    kind = PuzzleKind.GROUP.value

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token_els: Dict[str, Element] = {}
        self.group_els: Dict[str, Element] = {}
        self.group_rects: Dict[str, Rect] = {}
        self.assignments: Dict[str, str] = {}
        self.selected: Optional[str] = None
        self.board: Optional[Element] = None
        self.pool: Optional[Element] = None
        self.grid = (1, 1)
        self._dragging: Optional[str] = None

    @property
    def manual(self) -> bool:
        return self.layout.mode == "manual"

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-group")
        board = create_element("div", "pz-group-board")
        board.style.update({"flex": "1 1 auto", "position": "relative", "min-height": "220px"})
        self.listen(board, "pointerup", self._on_drop)
        self.board = board
        self.insert_content(board)

        pool = create_element("div", "pz-group-pool")
        pool.style.update({"display": "flex", "flex-wrap": "wrap", "gap": "var(--pz-token-gap)"})
        self.listen(pool, "click", self._on_pool_click)
        self.pool = pool
        self.insert_content(pool)

        for token in self.config.tokens:
            el = self.create_token(token)
            el.style["cursor"] = "grab"
            self.listen(el, "click", lambda event, tid=token.id: self._on_token_click(event, tid))
            self.listen(el, "pointerdown", lambda event, tid=token.id: self._start_drag(tid))
            pool.append_child(el)
            self.token_els[token.id] = el

        self._render_groups()
        logger.debug(
            "group %s mounted groups=%d tokens=%d grid=%s",
            self.id, len(self.group_els), len(self.token_els), self.grid,
        )

    def unmount(self) -> None:
        super().unmount()
        self.token_els = {}
        self.group_els = {}
        self.group_rects = {}
        self.assignments = {}
        self.selected = None
        self._dragging = None
        self.board = self.pool = None

    # --- board layout -----------------------------------------------------------

    def _render_groups(self) -> None:
        board = self.board
        for el in list(self.group_els.values()):
            for token_el in list(el.query_selector_all(".pz-token")):
                self.pool.append_child(token_el)
            el.remove()
        self.group_els = {}
        self.group_rects = {}

        groups = list(self.config.groups)
        direction = self.layout.direction
        if self.manual:
            board.style.pop("display", None)
            rects = [g.rect or Rect(0, 0, 0, 0) for g in groups]
        else:
            cols, rows = grid_dimensions(len(groups), direction)
            self.grid = (cols, rows)
            board.style.update({
                "display": "grid",
                "grid-template-columns": f"repeat({cols}, 1fr)",
                "grid-template-rows": f"repeat({rows}, 1fr)",
                "grid-auto-flow": "row" if direction == "horizontal" else "column",
                "gap": self.layout.gap or "10px",
                "place-content": "center",
            })
            board.dataset.update({"cols": str(cols), "rows": str(rows)})
            rects = grid_cells(len(groups), direction)

        for group, rect in zip(groups, rects):
            el = self._make_group_area(group)
            if self.manual:
                el.style["position"] = "absolute"
                el.style.update(rect_to_style(rect))
            self.group_rects[group.id] = rect
            board.append_child(el)

        # Tokens assigned to groups that no longer exist fall back to the pool.
        for token_id, group_id in list(self.assignments.items()):
            area = self.group_els.get(group_id)
            if area is None:
                del self.assignments[token_id]
            else:
                area.append_child(self.token_els[token_id])

    def _make_group_area(self, group: Group) -> Element:
        el = create_element("div", "pz-group-area")
        el.set_attribute("data-group", group.id)
        el.style.update({
            "border": "1px solid rgba(255, 255, 255, 0.25)",
            "border-radius": "var(--pz-token-radius)",
            "display": "flex",
            "flex-wrap": "wrap",
            "align-items": "center",
            "justify-content": "center",
            "background": str((group.style or {}).get("bg") or "rgba(255, 255, 255, 0.04)"),
            "position": "relative",
        })
        el.append_child(create_element("div", "pz-group-label", self.t(group.label, "")))
        self.listen(el, "click", lambda event, gid=group.id: self._on_area_click(event, gid))
        self.group_els[group.id] = el
        return el

    # PUBLIC_INTERFACE
    def set_groups(self, groups: Iterable[Any]) -> None:
        """Replace the group list and recompute the board layout."""
        parsed = tuple(Group.from_value(g, i) for i, g in enumerate(groups))
        self.config = replace(self.config, groups=parsed)
        if self.board is not None:
            self._render_groups()
            logger.debug("group %s regrouped count=%d grid=%s", self.id, len(parsed), self.grid)

    # --- assignment -------------------------------------------------------------

    # PUBLIC_INTERFACE
    def assign(self, token_id: str, group_id: Optional[str]) -> None:
        """Move a token into a group area, or back to the pool when ``group_id`` is None."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        el.class_list.remove("selected", "is-selected")
        self.mark(el, None)
        area = self.group_els.get(group_id) if group_id is not None else None
        if area is None:
            self.assignments.pop(token_id, None)
            self.pool.append_child(el)
        else:
            self.assignments[token_id] = group_id
            area.append_child(el)
        logger.debug("group %s assign %s -> %s", self.id, token_id, group_id if area else None)

    def group_at(self, x: float, y: float) -> Optional[str]:
        """Hit test in board percent coordinates."""
        for group_id, rect in self.group_rects.items():
            if rect.contains(x, y):
                return group_id
        return None

    def _select(self, token_id: Optional[str]) -> None:
        if self.selected is not None and self.selected in self.token_els:
            self.token_els[self.selected].class_list.remove("selected", "is-selected")
        self.selected = token_id
        if token_id is not None:
            self.token_els[token_id].class_list.add("selected", "is-selected")

    def _on_token_click(self, event: Event, token_id: str) -> None:
        event.stop_propagation()
        self._select(None if self.selected == token_id else token_id)

    def _on_area_click(self, event: Event, group_id: str) -> None:
        if self.selected is None:
            return
        token_id = self.selected
        self._select(None)
        self.assign(token_id, group_id)

    def _on_pool_click(self, event: Event) -> None:
        if self.selected is None:
            return
        token_id = self.selected
        self._select(None)
        self.assign(token_id, None)

    def _start_drag(self, token_id: str) -> None:
        self._dragging = token_id
        self.token_els[token_id].class_list.add("is-dragging")

    def _on_drop(self, event: Event) -> None:
        token_id = self._dragging
        if token_id is None:
            return
        self._dragging = None
        self.token_els[token_id].class_list.remove("is-dragging")
        x, y = event.get("x"), event.get("y")
        group_id = self.group_at(float(x), float(y)) if x is not None and y is not None else None
        self.assign(token_id, group_id)

    # PUBLIC_INTERFACE
    def drag(self, token_id: str, x: float, y: float) -> None:
        """Drag a token and drop it at board coordinates (percent)."""
        el = self.token_els.get(token_id)
        if el is None:
            return
        el.dispatch("pointerdown")
        self.board.dispatch("pointerup", x=x, y=y)

    # --- validation -------------------------------------------------------------

    def solutions(self) -> Optional[Dict[str, str]]:
        raw = self.config.solutions if self.config.solutions is not None else self.config.solution
        if not isinstance(raw, dict):
            return None
        return {str(k): str(v) for k, v in raw.items()}

    def validate(self) -> PuzzleResult:
        expected = self.solutions()
        ok = expected is not None and self.assignments == expected
        return PuzzleResult(ok=ok, value={"groups": dict(self.assignments)})

    def _wrong_tokens(self) -> List[str]:
        expected = self.solutions() or {}
        return [tid for tid in self.token_els if self.assignments.get(tid) != expected.get(tid)]

    def show_feedback(self, result: PuzzleResult) -> None:
        wrong = set(self._wrong_tokens())
        for token_id, el in self.token_els.items():
            self.mark(el, "wrong" if token_id in wrong else "correct")

    def on_held(self, result: PuzzleResult) -> None:
        for token_id in self._wrong_tokens():
            self.assign(token_id, None)
