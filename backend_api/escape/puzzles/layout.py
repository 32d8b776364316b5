from __future__ import annotations

import math
import random
from typing import Dict, List, NamedTuple, Optional, Tuple

from .dom import Element
from .schema import Layout, Rect

DEFAULT_WORK_RECT = Rect(10, 10, 80, 80)
FULL_RECT = Rect(0, 0, 100, 100)


class Position(NamedTuple):
    """Centre of a token on a free-form board, in percent of the board."""

    x: float
    y: float


def pct(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text}%"


def parse_pct(value: Optional[str], default: float = 0.0) -> float:
    if not value:
        return default
    try:
        return float(str(value).rstrip("%"))
    except ValueError:
        return default


# PUBLIC_INTERFACE
def rect_to_style(rect: Rect) -> Dict[str, str]:
    """Absolute positioning (in %) for a rect inside the scene."""
    return {"left": pct(rect.x), "top": pct(rect.y), "width": pct(rect.w), "height": pct(rect.h)}


# PUBLIC_INTERFACE
def apply_auto_layout(root: Element, layout: Optional[Layout]) -> None:
    """Tag the puzzle root with layout classes (pz--auto/manual, pz--vertical/horizontal/grid)."""
    layout = layout or Layout()
    auto = layout.mode != "manual"
    root.class_list.toggle("pz--auto", auto)
    root.class_list.toggle("pz--manual", not auto)
    root.class_list.remove("pz--vertical", "pz--horizontal", "pz--grid")
    if not auto:
        return
    if layout.direction == "grid":
        root.class_list.add("pz--grid")
        flow = root.query_selector(".pz__flow")
        if flow is not None:
            flow.set_attribute("data-cols", layout.grid_cols or 3)
    elif layout.direction == "horizontal":
        root.class_list.add("pz--horizontal")
    else:
        root.class_list.add("pz--vertical")


# PUBLIC_INTERFACE
def grid_dimensions(count: int, direction: str = "vertical") -> Tuple[int, int]:
    """Return ``(cols, rows)`` for a board of ``count`` group areas.

    Vertical boards keep up to three groups side by side, then go roughly
    square with columns = ceil(sqrt(n)) and rows = ceil(n / columns).
    Horizontal boards are the transpose.
    """
    if count <= 0:
        return 1, 1
    if count <= 3:
        return (count, 1) if direction != "horizontal" else (1, count)
    major = math.ceil(math.sqrt(count))
    minor = math.ceil(count / major)
    if direction == "horizontal":
        return minor, major
    return major, minor


def grid_cells(count: int, direction: str = "vertical") -> List[Rect]:
    """Cell rects (in % of the board) in placement order.

    Vertical boards fill column by column, horizontal boards row by row.
    """
    cols, rows = grid_dimensions(count, direction)
    cell_w, cell_h = 100.0 / cols, 100.0 / rows
    cells = []
    for i in range(count):
        if direction == "horizontal":
            row, col = divmod(i, cols)
        else:
            col, row = divmod(i, rows)
        cells.append(Rect(col * cell_w, row * cell_h, cell_w, cell_h))
    return cells


def min_separation(count: int, margin: float = 12.0, jitter: float = 0.6) -> float:
    """Lower bound on the distance between any two scattered positions."""
    if count <= 1:
        return math.inf
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    cell_w = (100 - 2 * margin) / cols
    cell_h = (100 - 2 * margin) / rows
    return (1 - jitter) * min(cell_w, cell_h)


# PUBLIC_INTERFACE
def scatter_positions(
    count: int,
    rng: Optional[random.Random] = None,
    margin: float = 12.0,
    jitter: float = 0.6,
) -> List[Position]:
    """Randomized, non-overlapping token positions for a free-form board.

    Positions are the centres of a ceil(sqrt(n))-column grid inside the
    margins, each moved by at most ``jitter / 2`` of a cell in either axis,
    then shuffled. Two positions are therefore never closer than
    ``min_separation(count, margin, jitter)``, so no two tokens can share a
    starting point for any count.
    """
    if count <= 0:
        return []
    if not 0 <= jitter < 1:
        raise ValueError("jitter must be in [0, 1)")
    rng = rng or random.Random()
    cols = math.ceil(math.sqrt(count))
    rows = math.ceil(count / cols)
    cell_w = (100 - 2 * margin) / cols
    cell_h = (100 - 2 * margin) / rows

    positions: List[Position] = []
    for i in range(count):
        row, col = divmod(i, cols)
        cx = margin + (col + 0.5) * cell_w
        cy = margin + (row + 0.5) * cell_h
        dx = (rng.random() - 0.5) * cell_w * jitter
        dy = (rng.random() - 0.5) * cell_h * jitter
        positions.append(Position(round(cx + dx, 2), round(cy + dy, 2)))
    rng.shuffle(positions)
    return positions


def shuffled(items: List, rng: Optional[random.Random] = None) -> List:
    out = list(items)
    (rng or random).shuffle(out)
    return out
