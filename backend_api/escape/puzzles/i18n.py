from __future__ import annotations

import re
import unicodedata
from typing import Any, Mapping, Optional

_KEY_FALLBACK_RE = re.compile(r"^@([^@]+)@(.*)$", re.DOTALL)
_PARAM_RE = re.compile(r"\{(\w+)\}")
_WHITESPACE_RE = re.compile(r"\s+")


def fmt(template: Any, params: Optional[Mapping[str, Any]] = None) -> str:
    """Substitute ``{name}`` placeholders; unknown names are left untouched."""
    text = "" if template is None else str(template)
    if not params:
        return text
    return _PARAM_RE.sub(lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0), text)


# PUBLIC_INTERFACE
def translate(
    tables: Mapping[str, Mapping[str, Any]],
    key: str,
    fallback: str = "",
    params: Optional[Mapping[str, Any]] = None,
) -> str:
    """Resolve ``key`` against the game table, then the engine table, then ``fallback``.

    Parameter substitution is applied only to the template that was chosen.
    """
    game = tables.get("game") or {}
    engine = tables.get("engine") or {}
    if game.get(key) is not None:
        raw = game[key]
    elif engine.get(key) is not None:
        raw = engine[key]
    else:
        raw = fallback
    return fmt(raw, params)


def split_key(value: str) -> Optional[tuple]:
    """Return ``(key, fallback)`` for an ``@key@fallback`` string, else None."""
    m = _KEY_FALLBACK_RE.match(value)
    if not m:
        return None
    return m.group(1).strip(), m.group(2)


# PUBLIC_INTERFACE
def resolve_text(resolver, value: Any, fallback: str = "") -> str:
    """Resolve a possibly-localized display value.

    - ``{"key": ...}`` dicts and ``"@key@fallback"`` strings go through ``resolver``
      (a ``resolve_string(key, fallback, params)`` callable)
    - plain strings are returned as they are
    - None becomes ``fallback``
    """
    if isinstance(value, dict) and value.get("key"):
        return resolver(str(value["key"]), value.get("fallback", fallback), value.get("params"))
    if isinstance(value, str):
        parsed = split_key(value)
        if parsed:
            key, default = parsed
            return resolver(key, default, None)
        return value
    if value is None:
        return fallback
    return str(value)


def strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


# PUBLIC_INTERFACE
def normalize_text(value: Any) -> str:
    """Normalize typed answers: casefold, strip diacritics, collapse and trim whitespace."""
    if value is None:
        return ""
    text = strip_diacritics(str(value).casefold())
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_code(value: Any) -> str:
    """Codes compare exactly, whitespace included."""
    if value is None:
        return ""
    return str(value)
