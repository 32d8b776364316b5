"""
Base puzzle: the lifecycle every kind implements, and the inert fallback kind.

Lifecycle: configure(config, options) -> mount(container) -> user interaction
-> check() / cancel() -> validate() -> completion signal -> unmount().

The base class renders the shared chrome (root, window, optional background
overlay, header, footer buttons) and owns every listener and timer a kind
registers through ``listen`` and ``set_timeout``, so ``unmount`` can release
them all.
"""

from __future__ import annotations

import logging
import random
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .dom import Element, Event, create_element
from .i18n import resolve_text
from .layout import DEFAULT_WORK_RECT, apply_auto_layout, rect_to_style
from .schema import InstanceOptions, Layout, PuzzleConfig, PuzzleResult, Token

logger = logging.getLogger(__name__)

CompletionHook = Callable[[PuzzleResult, bool], None]

MARK_CLASSES = ("correct", "wrong", "hint", "is-correct", "is-wrong", "is-hint")

_STYLE_KEYS = {
    "bg": "background",
    "color": "color",
    "border": "border",
    "borderColor": "border-color",
    "borderWidth": "border-width",
    "borderRadius": "border-radius",
    "fontSize": "font-size",
    "fontWeight": "font-weight",
    "textAlign": "text-align",
    "padding": "padding",
    "margin": "margin",
}


# PUBLIC_INTERFACE
class BasePuzzle:
    """Common puzzle infrastructure and the default (no-op) kind.

    Parameters:
        engine: host engine supplying resolve_string / resolve_asset / timers
        puzzle_id: identifier used for CSS hooks and logging
    """

    kind = "base"

    def __init__(self, engine: Any = None, puzzle_id: Optional[str] = None):
        self.engine = engine
        self.id = puzzle_id or "inline"
        self.config = PuzzleConfig()
        self.options = InstanceOptions()
        self.background: Optional[str] = None
        # Reference table for nested lookups (list steps); set by the runner.
        self.puzzles_by_id: Optional[Mapping[str, Any]] = None

        self.container: Optional[Element] = None
        self.root: Optional[Element] = None
        self.window_el: Optional[Element] = None
        self.flow_el: Optional[Element] = None
        self.footer_el: Optional[Element] = None
        self.ok_button: Optional[Element] = None
        self.cancel_button: Optional[Element] = None
        self._overlay: Optional[Element] = None

        self._listeners: List[Tuple[Element, str, Callable[[Event], None]]] = []
        self._timers: List[Any] = []
        self._on_complete: Optional[CompletionHook] = None
        self.mounted = False

    # --- lifecycle ----------------------------------------------------------

    # PUBLIC_INTERFACE
    def configure(self, config: Any, instance_options: Any = None) -> "BasePuzzle":
        """Store the descriptor and options. No rendering, no side effects.

        Options found under ``config.options`` override the instance options.
        """
        self.config = PuzzleConfig.from_dict(config)
        options = InstanceOptions.from_value(instance_options)
        if self.config.options:
            options = options.merged(self.config.options)
        self.options = options
        if self.config.id and self.id == "inline":
            self.id = self.config.id
        return self

    def bind(self, on_complete: Optional[CompletionHook]) -> None:
        """Install the completion hook (the runner's interception point)."""
        self._on_complete = on_complete

    # PUBLIC_INTERFACE
    def mount(self, container: Element) -> None:
        """Render the chrome into ``container`` and wire the footer buttons."""
        self.container = container
        root = create_element("div", f"pz pz--kind-{self.kind} pz--id-{self.id}")
        root.style.update({"position": "absolute", "inset": "0", "width": "100%", "height": "100%"})
        container.append_child(root)
        self.root = root

        window = create_element("div", "pz__window")
        window.style["position"] = "absolute"
        window.style.update(rect_to_style(self.config.rect or DEFAULT_WORK_RECT))
        root.append_child(window)
        self.window_el = window

        background = self.background or self.config.background
        if background:
            overlay = create_element("div", "pz-overlay")
            overlay.style.update({
                "background": f'url("{self._asset(background)}") center/cover no-repeat',
                "position": "absolute",
                "inset": "0",
                "pointer-events": "none",
            })
            container.insert_before(overlay, container.first_child)
            self._overlay = overlay

        flow = create_element("div", "pz__flow")
        window.append_child(flow)
        self.flow_el = flow

        self._render_header(flow)
        self._render_footer(flow)
        apply_auto_layout(root, self.layout)
        self.apply_theme()
        self.mounted = True
        logger.debug("mounted puzzle id=%s kind=%s", self.id, self.kind)

    # PUBLIC_INTERFACE
    def validate(self) -> PuzzleResult:
        """Compute the result from current runtime state. The base kind is never correct."""
        return PuzzleResult(ok=False)

    # PUBLIC_INTERFACE
    def unmount(self) -> None:
        """Detach every listener and timer and remove all rendered nodes. Safe to repeat."""
        for handle in self._timers:
            self._cancel_timer(handle)
        self._timers = []
        for element, event_type, listener in self._listeners:
            element.remove_event_listener(event_type, listener)
        self._listeners = []
        if self._overlay is not None:
            self._overlay.remove()
        if self.root is not None:
            self.root.remove()
        was_mounted = self.mounted
        self.root = self.window_el = self.flow_el = self.footer_el = None
        self.ok_button = self.cancel_button = self._overlay = None
        self.container = None
        self.mounted = False
        if was_mounted:
            logger.debug("unmounted puzzle id=%s kind=%s", self.id, self.kind)

    # --- affordances --------------------------------------------------------

    def check(self) -> PuzzleResult:
        """The OK affordance: validate, show feedback, signal completion."""
        result = self.validate()
        if not self.options.aggregate_only:
            self.show_feedback(result)
        logger.debug("check puzzle id=%s kind=%s ok=%s", self.id, self.kind, result.ok)
        self.complete(result)
        return result

    def cancel(self) -> None:
        """The Cancel affordance. Always ok=False and never held."""
        logger.debug("cancel puzzle id=%s kind=%s", self.id, self.kind)
        self.complete(PuzzleResult(ok=False, value={"reason": "cancel"}), cancelled=True)

    def complete(self, result: PuzzleResult, cancelled: bool = False) -> None:
        if self._on_complete is not None:
            self._on_complete(result, cancelled)

    def show_feedback(self, result: PuzzleResult) -> None:
        """Mark tokens correct/wrong after a check. Kinds override."""

    def on_held(self, result: PuzzleResult) -> None:
        """Called when the runner holds a failed result; kinds reset partial state here."""

    def unresolved_refs(self) -> List[Optional[str]]:
        """References this puzzle will look up later that the puzzle table cannot satisfy."""
        return []

    # --- helpers for kinds ----------------------------------------------------

    @property
    def rng(self) -> random.Random:
        return getattr(self.engine, "rng", None) or random.Random()

    @property
    def layout(self) -> Layout:
        return self.options.layout or self.config.layout or Layout()

    @property
    def multi_select(self) -> bool:
        if self.options.multi_select is not None:
            return self.options.multi_select
        return self.config.multi_select

    def listen(self, element: Element, event_type: str, listener: Callable[[Event], None]) -> None:
        element.add_event_listener(event_type, listener)
        self._listeners.append((element, event_type, listener))

    def set_timeout(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        if self.engine is None or not hasattr(self.engine, "call_later"):
            return None
        handle = None

        def fire():
            if handle in self._timers:
                self._timers.remove(handle)
            callback()

        handle = self.engine.call_later(delay_ms, fire)
        self._timers.append(handle)
        return handle

    def _cancel_timer(self, handle: Any) -> None:
        if handle is not None and self.engine is not None:
            self.engine.cancel(handle)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def t(self, value: Any, fallback: str = "") -> str:
        """Resolve a display value (plain text or ``@key@fallback``)."""
        resolver = getattr(self.engine, "resolve_string", None)
        if resolver is None:
            return resolve_text(lambda key, default, params: default, value, fallback)
        return resolve_text(resolver, value, fallback)

    def _asset(self, path: str) -> str:
        resolver = getattr(self.engine, "resolve_asset", None)
        return resolver(path) if resolver else path

    def insert_content(self, element: Element) -> Element:
        """Insert kind content into the flow, above the footer."""
        return self.flow_el.insert_before(element, self.footer_el)

    def apply_style(self, element: Element, style: Optional[Mapping[str, Any]]) -> None:
        if element is None or not style:
            return
        if style.get("visible") is False:
            element.style["display"] = "none"
        elif style.get("display"):
            element.style["display"] = str(style["display"])
        for key, css in _STYLE_KEYS.items():
            if style.get(key):
                element.style[css] = str(style[key])

    def apply_theme(self) -> None:
        if self.root is None:
            return
        themes = [self.config.theme or {}, self.options.theme or {}]
        for theme in themes:
            for name, value in (theme.get("vars") or {}).items():
                self.root.style[name] = str(value)
            if theme.get("class"):
                self.root.class_list.add(str(theme["class"]))
        if self.options.aggregate_only:
            self.root.class_list.add("pz--agg")

    def create_token(self, token: Token, extra_class: str = "") -> Element:
        """Render a token button with text and/or image."""
        el = create_element("button", f"pz-token {extra_class}".strip(), type="button")
        el.set_attribute("data-id", token.id)
        if token.image:
            img = create_element("img", "pz-token-image", src=self._asset(token.image))
            img.set_attribute("alt", self.t(token.display, ""))
            el.append_child(img)
        if token.display or not token.image:
            el.append_child(create_element("span", "pz-token-text", self.t(token.display, "")))
        merged = dict(self.config.theme.get("token") or {})
        merged.update(token.style or {})
        self.apply_style(el, merged)
        if token.rect is not None:
            el.style["position"] = "absolute"
            el.style.update(rect_to_style(token.rect))
        return el

    def create_token_area(self) -> Element:
        area = create_element("div", "pz-token-area")
        layout = self.layout
        if layout.mode == "manual":
            area.style.update({"position": "relative", "flex": "1 1 auto"})
        elif layout.grid_cols or layout.direction == "grid":
            area.style.update({
                "display": "grid",
                "grid-template-columns": f"repeat({layout.grid_cols or 2}, 1fr)",
                "gap": layout.gap or "var(--pz-token-gap)",
            })
        else:
            area.style.update({
                "display": "flex",
                "flex-direction": "row" if layout.direction == "horizontal" else "column",
                "flex-wrap": "wrap",
                "gap": "var(--pz-token-gap)",
            })
        return area

    @staticmethod
    def mark(element: Optional[Element], state: Optional[str]) -> None:
        """Set a correct/wrong/hint mark (or clear marks when ``state`` is None)."""
        if element is None:
            return
        element.class_list.remove(*MARK_CLASSES)
        if state:
            element.class_list.add(state, f"is-{state}")

    def flash_invalid(self, element: Optional[Element], duration_ms: int = 600) -> None:
        if element is None:
            return
        element.class_list.add("invalid")
        self.set_timeout(duration_ms, lambda: element.class_list.remove("invalid"))

    def _render_header(self, flow: Element) -> None:
        theme = self.config.theme or {}
        header = create_element("div", "pz-header-group")
        for part in ("title", "prompt"):
            value = getattr(self.config, part)
            part_theme = theme.get(part) or {}
            if not value or part_theme.get("visible") is False:
                continue
            el = create_element("div", f"pz-{part}", self.t(value, ""))
            self.apply_style(el, part_theme)
            header.append_child(el)
        if header.children:
            flow.append_child(header)

    def _render_footer(self, flow: Element) -> None:
        buttons = self._merged_buttons()
        footer = create_element("div", "pz-footer")
        if buttons["ok"].get("visible") is not False:
            ok = create_element("button", "pz-btn pz-btn--ok", self.t(buttons["ok"]["label"], "OK"), type="button")
            self.listen(ok, "click", lambda event: self.check())
            footer.append_child(ok)
            self.ok_button = ok
        if buttons["cancel"].get("visible") is not False:
            cancel = create_element(
                "button", "pz-btn pz-btn--cancel", self.t(buttons["cancel"]["label"], "Close"), type="button"
            )
            self.listen(cancel, "click", lambda event: self.cancel())
            footer.append_child(cancel)
            self.cancel_button = cancel
        flow.append_child(footer)
        self.footer_el = footer

    def _merged_buttons(self) -> Dict[str, Dict[str, Any]]:
        merged: Dict[str, Dict[str, Any]] = {
            "ok": {"visible": True, "label": "@btn.ok@OK"},
            "cancel": {"visible": True, "label": "@btn.cancel@Close"},
        }
        for source in (self.config.buttons or {}, self.options.buttons or {}):
            for name in ("ok", "cancel"):
                merged[name].update(source.get(name) or {})
        return merged

    def __repr__(self) -> str:  # pragma: no cover
        return f"<{type(self).__name__} id={self.id!r} kind={self.kind!r}>"
