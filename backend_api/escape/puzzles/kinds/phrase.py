from __future__ import annotations

import logging
from typing import List, Optional

from ..base import BasePuzzle
from ..dom import Element, Event, create_element
from ..i18n import normalize_text
from ..schema import PuzzleKind, PuzzleResult, as_id_list

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class PhrasePuzzle(BasePuzzle):
    """Free-text answer, compared case-insensitively with whitespace normalized."""

    kind = PuzzleKind.PHRASE.value
    input_type = "text"
    default_placeholder = "…"
    invalid_flash_ms = 600

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.input: Optional[Element] = None

    def mount(self, container: Element) -> None:
        super().mount(container)
        self.root.class_list.add(f"pz-kind-{self.kind}")
        wrap = create_element("div", "pz-input-wrap")
        field = create_element("input", "pz-input", type=self.input_type, autocomplete="off")
        field.set_attribute("data-id", "input")
        field.set_attribute("placeholder", self.t(self.config.placeholder, self.default_placeholder))
        self.listen(field, "input", self._on_input)
        self.listen(field, "keydown", self._on_key)
        wrap.append_child(field)
        self.insert_content(wrap)
        self.input = field

    def unmount(self) -> None:
        super().unmount()
        self.input = None

    def _on_input(self, event: Event) -> None:
        self.input.value = str(event.get("value", self.input.value) or "")

    def _on_key(self, event: Event) -> None:
        key = event.get("key")
        if key == "Enter":
            self.check()
        elif key == "Escape":
            self.cancel()

    @property
    def typed(self) -> str:
        return self.input.value if self.input is not None else ""

    def expected(self) -> Optional[List[str]]:
        pool = self.config.solutions if self.config.solutions is not None else self.config.solution
        values = as_id_list(pool)
        if values is None:
            return None
        return [self.t(v, v) for v in values]

    def matches(self, typed: str, expected: str) -> bool:
        return normalize_text(typed) == normalize_text(expected)

    def validate(self) -> PuzzleResult:
        typed = self.typed
        expected = self.expected()
        ok = bool(expected) and any(self.matches(typed, candidate) for candidate in expected)
        logger.debug("validate %s id=%s ok=%s", self.kind, self.id, ok)
        return PuzzleResult(ok=ok, value={"value": typed})

    def on_held(self, result: PuzzleResult) -> None:
        self.flash_invalid(self.input, self.invalid_flash_ms)
