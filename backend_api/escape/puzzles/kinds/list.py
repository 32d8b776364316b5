"""
Sequential composition of puzzles.

The list owns an index into its steps and at most one sub-runner. Advancing is
always teardown-then-construct: the finished sub-runner is unmounted before the
next one is created. A step that fails without being held is mounted again
from scratch, so the sequence pauses instead of aborting. Cancelling a step
cancels the whole list.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set

from ..base import BasePuzzle
from ..dom import Element, create_element
from ..layout import DEFAULT_WORK_RECT, FULL_RECT, rect_to_style
from ..schema import PuzzleConfig, PuzzleKind, PuzzleResult, Step

logger = logging.getLogger(__name__)


def _missing_refs(steps: List[Step], table: Dict[str, Any], seen: Set[str]) -> List[Optional[str]]:
    """Step refs that do not resolve in ``table``, nested lists included."""
    missing: List[Optional[str]] = []
    for step in steps:
        config = step.config
        if config is None:
            if not step.ref or str(step.ref) not in table:
                missing.append(step.ref)
                continue
            if step.ref in seen:
                continue
            seen.add(step.ref)
            config = PuzzleConfig.from_dict(table[str(step.ref)])
        if config.kind == PuzzleKind.LIST.value:
            missing.extend(_missing_refs(list(config.steps), table, seen))
    return missing


# PUBLIC_INTERFACE
class ListPuzzle(BasePuzzle):
    """Run ``steps`` one after another; resolves ok once every step is solved."""

    kind = PuzzleKind.LIST.value

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.index = 0
        self.results: List[Dict[str, Any]] = []
        self.attempts = 0
        self.runner = None
        self.summary_el: Optional[Element] = None
        self.finished = False

    @property
    def steps(self) -> List[Step]:
        return list(self.config.steps)

    def _table(self) -> Dict[str, Any]:
        from ..runner import index_puzzles

        table = index_puzzles(self.puzzles_by_id)
        return table or index_puzzles(getattr(self.engine, "puzzles", None))

    def unresolved_refs(self) -> List[Optional[str]]:
        seen = {self.config.id} if self.config.id else set()
        return _missing_refs(self.steps, self._table(), seen)

    def mount(self, container: Element) -> None:
        # No chrome of its own: each step renders its own window and buttons.
        self.container = container
        root = create_element("div", f"pz pz--kind-list pz--id-{self.id} pz-kind-list")
        root.style.update({"position": "absolute", "inset": "0"})
        background = self.background or self.config.background
        if background:
            overlay = create_element("div", "pz-overlay pz-list-background")
            overlay.style.update({
                "background": f'url("{self._asset(background)}") center/cover no-repeat',
                "position": "absolute",
                "inset": "0",
                "pointer-events": "none",
            })
            root.append_child(overlay)
        container.append_child(root)
        self.root = root
        self.mounted = True
        logger.debug("list %s mounted steps=%d", self.id, len(self.steps))
        self._start_step()

    def unmount(self) -> None:
        self._teardown_step()
        self.summary_el = None
        super().unmount()

    def _teardown_step(self) -> None:
        runner, self.runner = self.runner, None
        if runner is not None:
            runner.unmount()

    def _step_options(self, step: Step) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "aggregate_only": self.options.aggregate_only,
            "block_until_solved": self.options.block_until_solved,
        }
        options.update(step.options or {})
        return options

    def _start_step(self) -> None:
        # Imported here: the runner module imports the kind registry, which imports this module.
        from ..runner import create_puzzle_runner

        if self.index >= len(self.steps):
            self._show_summary()
            return
        step = self.steps[self.index]
        self.attempts += 1
        runner = None

        def on_resolve(result: PuzzleResult) -> None:
            if self.runner is runner:
                self._on_step_resolved(step, result)

        runner = create_puzzle_runner(
            config=step.config,
            ref=step.ref,
            puzzles_by_id=self.puzzles_by_id if self.puzzles_by_id is not None else getattr(self.engine, "puzzles", None),
            instance_options=self._step_options(step),
            engine=self.engine,
            on_resolve=on_resolve,
            rect=step.rect or FULL_RECT,
            background=step.background,
        )
        self.runner = runner
        runner.mount_into(self.root)
        logger.debug("list %s step %d/%d (%s) attempt %d", self.id, self.index + 1, len(self.steps), step.label, self.attempts)

    def _on_step_resolved(self, step: Step, result: PuzzleResult) -> None:
        if result.cancelled:
            logger.debug("list %s step %d cancelled", self.id, self.index)
            self._teardown_step()
            self.complete(PuzzleResult(ok=False, value={"reason": "cancel", "results": list(self.results)}), cancelled=True)
            return
        if not result.ok:
            # Unheld failure: same step again, fresh instance.
            self._teardown_step()
            self._start_step()
            return
        self.results.append({
            "index": self.index,
            "ref": step.label or f"#{self.index}",
            "ok": True,
            "value": result.value,
            "attempts": self.attempts,
        })
        self._teardown_step()
        self.index += 1
        self.attempts = 0
        self._start_step()

    @property
    def first_try(self) -> int:
        return sum(1 for r in self.results if r["attempts"] == 1)

    def _show_summary(self) -> None:
        summary = self.config.summary or {}
        if summary.get("show") is False:
            self._finish()
            return
        total = len(self.results)
        solved = self.first_try
        clean = solved == total

        host = create_element("div", "pz-list-summary")
        host.style.update(rect_to_style(self.config.rect or DEFAULT_WORK_RECT))
        host.style["position"] = "absolute"
        host.append_child(create_element(
            "div", "pz-list-summary-title", self.t(summary.get("title") or "@list.summary.title@Results", "Results")
        ))
        if summary.get("showScore", summary.get("show_score")) is not False:
            score = create_element("div", "pz-list-summary-score", f"{solved} / {total}")
            score.class_list.add("is-correct" if clean else "is-partial")
            host.append_child(score)
        if clean:
            message = summary.get("messageOk") or summary.get("message_ok") or "@list.summary.ok@Well done! Series complete."
            fallback = "Well done! Series complete."
        else:
            message = summary.get("messageFail") or summary.get("message_fail") or "@list.summary.fail@Solved, with some retries."
            fallback = "Solved, with some retries."
        host.append_child(create_element("div", "pz-list-summary-message", self.t(message, fallback)))
        ok = create_element("button", "pz-btn pz-btn--ok", self.t("@engine.modal.ok@OK", "OK"), type="button")
        self.listen(ok, "click", lambda event: self._close_summary())
        host.append_child(ok)
        self.root.append_child(host)
        self.summary_el = host
        logger.debug("list %s summary %d/%d", self.id, solved, total)

    def _close_summary(self) -> None:
        if self.summary_el is not None:
            self.summary_el.remove()
            self.summary_el = None
        self._finish()

    def _finish(self) -> None:
        if self.finished:
            return
        self.finished = True
        logger.debug("list %s finished results=%d", self.id, len(self.results))
        self.complete(PuzzleResult(ok=True, value={"results": list(self.results)}))

    # PUBLIC_INTERFACE
    def check(self) -> PuzzleResult:
        """The list has no OK button of its own; on the summary screen this closes it."""
        if self.summary_el is not None:
            self._close_summary()
        return self.validate()

    def validate(self) -> PuzzleResult:
        done = self.index >= len(self.steps)
        return PuzzleResult(ok=done, value={"results": list(self.results)})

    def cancel(self) -> None:
        self._teardown_step()
        super().cancel()
