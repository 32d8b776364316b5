from __future__ import annotations

import logging
from typing import Dict, List, Optional

from ..base import BasePuzzle
from ..dom import Element, Event, create_element
from ..schema import PuzzleKind, PuzzleResult, Token, as_id_list

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "@engine.puzzle.incorrect@The puzzle is not solved correctly."


# PUBLIC_INTERFACE
class ChoicePuzzle(BasePuzzle):
    """One row per token: a label and a dropdown (or a free-text input).

    The result is all-or-nothing: every row must hold one of its accepted
    values. Rows are marked individually so the player can see which ones
    are wrong.
    """

    kind = PuzzleKind.CHOICE.value
    invalid_flash_ms = 600

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.values: Dict[str, str] = {}
        self.rows: Dict[str, Element] = {}
        self.menus: Dict[str, Element] = {}
        self.buttons: Dict[str, Element] = {}
        self.inputs: Dict[str, Element] = {}

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add("pz-kind-choice")
        rows = create_element("div", "pz-choice-list")
        rows.style.update({
            "flex": "1 1 auto",
            "display": "flex",
            "flex-direction": "column",
            "gap": "var(--pz-token-gap)",
            "overflow-y": "auto",
        })
        for token in self.config.tokens:
            row = self._make_row(token)
            rows.append_child(row)
            self.rows[token.id] = row
        self.insert_content(rows)
        # Any click that reaches the root closes the open menus.
        self.listen(self.root, "click", lambda event: self.close_menus())

    def unmount(self) -> None:
        super().unmount()
        self.values = {}
        self.rows = {}
        self.menus = {}
        self.buttons = {}
        self.inputs = {}

    def _make_row(self, token: Token) -> Element:
        row = create_element("div", "pz-choice-row")
        row.set_attribute("data-id", token.id)
        row.style.update({
            "display": "grid",
            "grid-template-columns": "1fr auto",
            "gap": "var(--pz-token-gap)",
            "align-items": "center",
        })
        label = create_element("div", "pz-choice-text", self.t(token.display, ""))
        label.set_attribute("data-id", f"label:{token.id}")
        self.apply_style(label, self.config.theme.get("text"))
        row.append_child(label)

        control = create_element("div", "pz-choice-control")
        control.set_attribute("data-id", f"control:{token.id}")
        control.style["position"] = "relative"
        if token.editable or not token.choices:
            control.append_child(self._make_input(token))
        else:
            self._make_dropdown(token, control)
        row.append_child(control)
        return row

    def _make_input(self, token: Token) -> Element:
        field = create_element("input", "pz-input pz-choice-input", type="text")
        field.set_attribute("data-id", f"input:{token.id}")
        field.set_attribute("placeholder", self.t(token.placeholder, ""))
        field.style["min-width"] = "120px"
        self.apply_style(field, {**(self.config.theme.get("input") or {}), **(token.style or {})})

        def on_input(event: Event, tid=token.id):
            field.value = str(event.get("value", field.value) or "")
            self.values[tid] = field.value

        self.listen(field, "input", on_input)
        self.inputs[token.id] = field
        return field

    def _make_dropdown(self, token: Token, control: Element) -> None:
        button = create_element(
            "button", "pz-token pz-choice-button",
            self.t(token.placeholder or "@engine.select@Select…", "Select…"),
            type="button",
        )
        button.set_attribute("data-id", f"button:{token.id}")
        button.style.update({"min-width": "120px", "cursor": "pointer"})
        self.apply_style(button, {**(self.config.theme.get("token") or {}), **(token.style or {})})

        menu = create_element("div", "pz-dropdown")
        menu.set_attribute("data-id", f"menu:{token.id}")
        menu.style.update({"position": "absolute", "top": "calc(100% + 4px)", "right": "0", "display": "none"})
        for choice in token.choices:
            option = create_element(
                "button", "pz-token pz-choice-option",
                self.t(choice.label or choice.value, choice.value),
                type="button",
            )
            option.set_attribute("data-value", choice.value)
            self.listen(
                option, "click",
                lambda event, tid=token.id, value=choice.value: self.choose(tid, value),
            )
            menu.append_child(option)

        def on_button(event: Event, tid=token.id):
            event.stop_propagation()
            self.toggle_menu(tid)

        self.listen(button, "click", on_button)
        control.append_child(button)
        control.append_child(menu)
        self.buttons[token.id] = button
        self.menus[token.id] = menu

    # PUBLIC_INTERFACE
    def toggle_menu(self, token_id: str) -> bool:
        """Open a row's menu (closing all others) or close it if open. Returns the open state."""
        menu = self.menus.get(token_id)
        if menu is None:
            return False
        was_open = menu.style.get("display") == "block"
        self.close_menus()
        menu.style["display"] = "none" if was_open else "block"
        return not was_open

    def close_menus(self) -> None:
        for menu in self.menus.values():
            menu.style["display"] = "none"

    def is_open(self, token_id: str) -> bool:
        menu = self.menus.get(token_id)
        return menu is not None and menu.style.get("display") == "block"

    # PUBLIC_INTERFACE
    def choose(self, token_id: str, value: str) -> None:
        """Record a value for a row and show its label on the row's button."""
        if token_id not in self.rows:
            return
        self.values[token_id] = str(value)
        button = self.buttons.get(token_id)
        token = self.config.token(token_id)
        if button is not None and token is not None:
            label = next((c.label for c in token.choices if c.value == str(value) and c.label), str(value))
            button.text = self.t(label, str(value))
        field = self.inputs.get(token_id)
        if field is not None:
            field.value = str(value)
        if token_id in self.menus:
            self.menus[token_id].style["display"] = "none"
        self.mark(self.rows[token_id], None)
        logger.debug("choice %s row %s = %r", self.id, token_id, value)

    def solutions(self) -> Dict[str, List[str]]:
        """Accepted values per row: the ``solutions`` map, else each token's ``solution``."""
        accepted: Dict[str, List[str]] = {}
        if isinstance(self.config.solutions, dict):
            for token_id, raw in self.config.solutions.items():
                accepted[str(token_id)] = [self.t(v, v) for v in as_id_list(raw) or []]
        if not accepted:
            for token in self.config.tokens:
                values = as_id_list(token.solution)
                if values is not None:
                    accepted[token.id] = [self.t(v, v) for v in values]
        return accepted

    def row_ok(self, token_id: str, accepted: Optional[Dict[str, List[str]]] = None) -> bool:
        accepted = self.solutions() if accepted is None else accepted
        expected = accepted.get(token_id)
        if not expected:
            return False
        return self.values.get(token_id, "") in expected

    def wrong_rows(self) -> List[str]:
        accepted = self.solutions()
        # Every configured row counts, rendered or not.
        return [token.id for token in self.config.tokens if not self.row_ok(token.id, accepted)]

    def validate(self) -> PuzzleResult:
        ok = not self.wrong_rows()
        return PuzzleResult(ok=ok, value={"values": dict(self.values)})

    def show_feedback(self, result: PuzzleResult) -> None:
        wrong = set(self.wrong_rows())
        for token_id, row in self.rows.items():
            self.mark(row, "wrong" if token_id in wrong else "correct")

    def on_held(self, result: PuzzleResult) -> None:
        for token_id in self.wrong_rows():
            self.flash_invalid(self.rows.get(token_id), self.invalid_flash_ms)
        show = self.options.show_error_toast
        if show is None:
            show = self.config.show_error_toast
        if show is False:
            return
        message = self.t(self.config.error_message or DEFAULT_ERROR_MESSAGE, "The puzzle is not solved correctly.")
        toast = getattr(self.engine, "toast", None)
        if toast is None:
            logger.warning("choice %s: engine has no toast sink, dropping %r", self.id, message)
            return
        toast(message, 2500)
