"""
Declarative shapes of puzzle descriptors.

Descriptors arrive as JSON-like dicts (from the puzzle table or inline in a
request). ``PuzzleConfig.from_dict`` accepts camelCase or snake_case keys and
keeps unknown keys in ``extra``; which fields matter depends on the kind and
unused ones are simply ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


# PUBLIC_INTERFACE
class PuzzleKind(str, Enum):
    """The built-in interaction/validation strategies."""

    PHRASE = "phrase"
    CODE = "code"
    QUIZ = "quiz"
    ORDER = "order"
    MATCH = "match"
    GROUP = "group"
    CHOICE = "choice"
    LIST = "list"
    CLOZE = "cloze"

_ALIASES = {
    "multiSelect": "multi_select",
    "solutionIds": "solution_ids",
    "errorMessage": "error_message",
    "showErrorToast": "show_error_toast",
    "solutionPairs": "pairs",
    "blockUntilSolved": "block_until_solved",
    "aggregateOnly": "aggregate_only",
    "resetOnFail": "reset_on_fail",
    "items": "steps",
}


def _snake(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in (data or {}).items()}


@dataclass(frozen=True)
class Rect:
    """Percentage rectangle inside the scene (x, y, width, height)."""

    x: float = 0.0
    y: float = 0.0
    w: float = 100.0
    h: float = 100.0

    @classmethod
    def from_value(cls, value: Any, default: Optional["Rect"] = None) -> Optional["Rect"]:
        if isinstance(value, Rect):
            return value
        if not isinstance(value, Mapping):
            return default
        return cls(
            x=float(value.get("x", 0) or 0),
            y=float(value.get("y", 0) or 0),
            w=float(value.get("w", 0) or 0),
            h=float(value.get("h", 0) or 0),
        )

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x + self.w and self.y <= py <= self.y + self.h

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class Layout:
    """Layout hints: mode auto|manual, direction vertical|horizontal|grid."""

    mode: str = "auto"
    direction: str = "vertical"
    gap: Optional[str] = None
    grid_cols: Optional[int] = None

    @classmethod
    def from_value(cls, value: Any) -> Optional["Layout"]:
        if isinstance(value, Layout):
            return value
        if not isinstance(value, Mapping):
            return None
        grid = value.get("grid") or {}
        cols = grid.get("cols") if isinstance(grid, Mapping) else None
        return cls(
            mode=str(value.get("mode") or "auto"),
            direction=str(value.get("direction") or "vertical"),
            gap=value.get("gap"),
            grid_cols=int(cols) if cols is not None else None,
        )


@dataclass(frozen=True)
class Choice:
    value: str
    label: str = ""

    @classmethod
    def from_value(cls, value: Any) -> "Choice":
        if isinstance(value, Mapping):
            raw = value.get("value", value.get("label", ""))
            return cls(value=str(raw if raw is not None else ""), label=str(value.get("label") or ""))
        return cls(value=str(value), label=str(value))


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Token:
    """An atomic interactive unit. Identity is ``id``; ``text`` is display only."""

    id: str
    text: str = ""
    label: str = ""
    side: Optional[str] = None
    choices: Tuple[Choice, ...] = ()
    solution: Any = None
    correct: bool = False
    image: Optional[str] = None
    style: Mapping[str, Any] = field(default_factory=dict)
    rect: Optional[Rect] = None
    placeholder: str = ""
    editable: bool = False

    @classmethod
    def from_value(cls, value: Any, index: int) -> "Token":
        if not isinstance(value, Mapping):
            return cls(id=str(index), text=str(value))
        raw_id = value.get("id")
        return cls(
            id=str(raw_id if raw_id is not None else index),
            text=str(value.get("text") or ""),
            label=str(value.get("label") or ""),
            side=value.get("side"),
            choices=tuple(Choice.from_value(c) for c in value.get("choices") or ()),
            solution=value.get("solution"),
            correct=bool(value.get("correct", False)),
            image=value.get("image"),
            style=dict(value.get("style") or {}),
            rect=Rect.from_value(value.get("rect")),
            placeholder=str(value.get("placeholder") or ""),
            editable=bool(value.get("editable", False)),
        )

    @property
    def display(self) -> str:
        return self.label or self.text


@dataclass(frozen=True)
class Group:
    id: str
    label: str = ""
    rect: Optional[Rect] = None
    style: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any, index: int) -> "Group":
        if not isinstance(value, Mapping):
            return cls(id=str(value), label=str(value))
        raw_id = value.get("id")
        return cls(
            id=str(raw_id if raw_id is not None else index),
            label=str(value.get("label") or ""),
            rect=Rect.from_value(value.get("rect")),
            style=dict(value.get("style") or {}),
        )


@dataclass(frozen=True)
class Step:
    """One entry of a list puzzle: a reference or an inline config."""

    ref: Optional[str] = None
    config: Optional["PuzzleConfig"] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    rect: Optional[Rect] = None
    background: Optional[str] = None

    @classmethod
    def from_value(cls, value: Any) -> "Step":
        if isinstance(value, str):
            return cls(ref=value)
        value = value or {}
        inline = value.get("config")
        return cls(
            ref=value.get("ref"),
            config=PuzzleConfig.from_dict(inline) if isinstance(inline, Mapping) else None,
            options=dict(value.get("options") or {}),
            rect=Rect.from_value(value.get("rect")),
            background=value.get("background"),
        )

    @property
    def label(self) -> str:
        if self.ref:
            return self.ref
        if self.config is not None and self.config.id:
            return self.config.id
        return ""


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class PuzzleConfig:
    """Immutable puzzle descriptor supplied by the host."""

    kind: str = ""
    id: Optional[str] = None
    title: Any = None
    prompt: Any = None
    solution: Any = None
    solutions: Any = None
    solution_ids: Any = None
    pairs: Any = None
    tokens: Tuple[Token, ...] = ()
    groups: Tuple[Group, ...] = ()
    steps: Tuple[Step, ...] = ()
    text: Any = None
    rect: Optional[Rect] = None
    background: Optional[str] = None
    layout: Optional[Layout] = None
    mode: Optional[str] = None
    multi_select: bool = False
    placeholder: Any = None
    theme: Mapping[str, Any] = field(default_factory=dict)
    buttons: Mapping[str, Any] = field(default_factory=dict)
    summary: Mapping[str, Any] = field(default_factory=dict)
    error_message: Any = None
    show_error_toast: Optional[bool] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    # PUBLIC_INTERFACE
    @classmethod
    def from_dict(cls, data: Any) -> "PuzzleConfig":
        """Build a config from a JSON-like mapping (or return an existing config)."""
        if isinstance(data, PuzzleConfig):
            return data
        raw = _snake(data or {})
        known = {f.name for f in fields(cls)}
        extra = {k: v for k, v in raw.items() if k not in known}
        raw_id = raw.get("id")
        return cls(
            kind=str(raw.get("kind") or "").strip().lower(),
            id=str(raw_id) if raw_id is not None else None,
            title=raw.get("title"),
            prompt=raw.get("prompt"),
            solution=raw.get("solution"),
            solutions=raw.get("solutions"),
            solution_ids=raw.get("solution_ids"),
            pairs=raw.get("pairs"),
            tokens=tuple(Token.from_value(t, i) for i, t in enumerate(raw.get("tokens") or ())),
            groups=tuple(Group.from_value(g, i) for i, g in enumerate(raw.get("groups") or ())),
            steps=tuple(Step.from_value(s) for s in raw.get("steps") or ()),
            text=raw.get("text"),
            rect=Rect.from_value(raw.get("rect")),
            background=raw.get("background"),
            layout=Layout.from_value(raw.get("layout")),
            mode=(str(raw["mode"]).lower() if raw.get("mode") else None),
            multi_select=bool(raw.get("multi_select", False)),
            placeholder=raw.get("placeholder"),
            theme=dict(raw.get("theme") or {}),
            buttons=dict(raw.get("buttons") or {}),
            summary=dict(raw.get("summary") or {}),
            error_message=raw.get("error_message"),
            show_error_toast=raw.get("show_error_toast"),
            options=_snake(raw.get("options") or {}),
            extra=extra,
        )

    def token(self, token_id: str) -> Optional[Token]:
        for token in self.tokens:
            if token.id == token_id:
                return token
        return None


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class InstanceOptions:
    """Per-launch options. ``block_until_solved`` holds failed validations."""

    block_until_solved: bool = False
    multi_select: Optional[bool] = None
    aggregate_only: bool = False
    reset_on_fail: bool = True
    show_error_toast: Optional[bool] = None
    layout: Optional[Layout] = None
    theme: Mapping[str, Any] = field(default_factory=dict)
    buttons: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_value(cls, value: Any) -> "InstanceOptions":
        if isinstance(value, InstanceOptions):
            return value
        return cls().merged(value or {})

    def merged(self, overrides: Mapping[str, Any]) -> "InstanceOptions":
        """Return a copy with ``overrides`` (camelCase or snake_case) applied."""
        raw = _snake(overrides or {})
        changes: Dict[str, Any] = {}
        for name in ("block_until_solved", "aggregate_only", "reset_on_fail"):
            if raw.get(name) is not None:
                changes[name] = bool(raw[name])
        for name in ("multi_select", "show_error_toast"):
            if raw.get(name) is not None:
                changes[name] = bool(raw[name])
        if raw.get("layout") is not None:
            changes["layout"] = Layout.from_value(raw["layout"])
        if raw.get("theme") is not None:
            changes["theme"] = dict(raw["theme"])
        if raw.get("buttons") is not None:
            changes["buttons"] = dict(raw["buttons"])
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "block_until_solved": self.block_until_solved,
            "aggregate_only": self.aggregate_only,
            "reset_on_fail": self.reset_on_fail,
        }
        if self.multi_select is not None:
            data["multi_select"] = self.multi_select
        if self.show_error_toast is not None:
            data["show_error_toast"] = self.show_error_toast
        return data


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class PuzzleResult:
    """The sole payload handed to the host's resolution callback."""

    ok: bool
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "value": self.value}

    @property
    def cancelled(self) -> bool:
        return isinstance(self.value, Mapping) and self.value.get("reason") == "cancel"


def as_id_list(value: Any) -> Optional[List[str]]:
    """Coerce a solution value into a list of string ids (None when absent)."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(v) for v in value]
    return [str(value)]
