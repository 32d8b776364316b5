from __future__ import annotations

from ..i18n import normalize_code
from ..schema import PuzzleKind, PuzzleResult
from .phrase import PhrasePuzzle


# PUBLIC_INTERFACE
class CodePuzzle(PhrasePuzzle):
    """Masked code entry. Exact comparison: no case folding, PIN semantics."""

    kind = PuzzleKind.CODE.value
    input_type = "password"
    default_placeholder = "******"
    invalid_flash_ms = 700

    def matches(self, typed: str, expected: str) -> bool:
        return normalize_code(typed) == normalize_code(expected)

    def show_feedback(self, result: PuzzleResult) -> None:
        # Codes always flash on failure, held or not.
        if not result.ok:
            self.flash_invalid(self.input, self.invalid_flash_ms)

    def on_held(self, result: PuzzleResult) -> None:
        pass
