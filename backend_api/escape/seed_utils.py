import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from django.db import transaction

from .models import PuzzleDefinition

DEFAULT_SEED: List[Dict[str, Any]] = [
    {
        "id": "eureka",
        "kind": "phrase",
        "title": "The inscription",
        "prompt": "What did Archimedes shout?",
        "solution": "eureka",
    },
    {
        "id": "safe",
        "kind": "code",
        "title": "The safe",
        "prompt": "Enter the four-digit code.",
        "solution": "1234",
    },
    {
        "id": "planets",
        "kind": "quiz",
        "title": "Gas giants",
        "multiSelect": True,
        "tokens": [
            {"id": "jupiter", "text": "Jupiter"},
            {"id": "mars", "text": "Mars"},
            {"id": "saturn", "text": "Saturn"},
        ],
        "solutions": ["jupiter", "saturn"],
    },
    {
        "id": "countdown",
        "kind": "order",
        "title": "Count up",
        "tokens": [{"id": "1", "text": "one"}, {"id": "2", "text": "two"}, {"id": "3", "text": "three"}],
        "solutions": ["1", "2", "3"],
    },
    {
        "id": "capitals",
        "kind": "match",
        "title": "Capitals",
        "tokens": [
            {"id": "fr", "text": "France", "side": "left"},
            {"id": "de", "text": "Germany", "side": "left"},
            {"id": "paris", "text": "Paris", "side": "right"},
            {"id": "berlin", "text": "Berlin", "side": "right"},
        ],
        "solutions": {"fr": "paris", "de": "berlin"},
    },
    {
        "id": "sorting",
        "kind": "group",
        "title": "Fruit or vegetable",
        "groups": [{"id": "fruit", "label": "Fruit"}, {"id": "veg", "label": "Vegetable"}],
        "tokens": [{"id": "apple", "text": "Apple"}, {"id": "carrot", "text": "Carrot"}],
        "solutions": {"apple": "fruit", "carrot": "veg"},
    },
    {
        "id": "colours",
        "kind": "choice",
        "title": "Colours",
        "tokens": [
            {"id": "sky", "text": "The sky is", "choices": ["blue", "green"], "solution": "blue"},
            {"id": "grass", "text": "Grass is", "choices": ["blue", "green"], "solution": "green"},
        ],
    },
    {
        "id": "proverb",
        "kind": "cloze",
        "title": "Finish the proverb",
        "text": "The early {gap1} catches the {gap2}.",
        "tokens": [{"id": "bird", "text": "bird"}, {"id": "worm", "text": "worm"}, {"id": "cat", "text": "cat"}],
        "solution": {"gap1": "bird", "gap2": "worm"},
    },
    {
        "id": "vault",
        "kind": "list",
        "title": "The vault",
        "steps": [{"ref": "eureka"}, {"ref": "safe"}],
        "summary": {"show": True},
    },
]


def load_puzzle_file(path: str) -> List[Dict[str, Any]]:
    """Read puzzle descriptors from JSON: a list, or a mapping of id -> descriptor."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("puzzles", data)
    if isinstance(data, dict):
        return [{**config, "id": puzzle_id} for puzzle_id, config in data.items()]
    if not isinstance(data, list):
        raise ValueError("Puzzle file must contain a list or a mapping of puzzles.")
    return data


# PUBLIC_INTERFACE
def ensure_seed_puzzles(seed_puzzles: Optional[List[Dict[str, Any]]] = None) -> int:
    """Ensure the puzzle table has a minimal playable set.

    Returns number of puzzles inserted (0 if already present).
    """
    if PuzzleDefinition.objects.exists():
        return 0
    puzzles = seed_puzzles or DEFAULT_SEED
    with transaction.atomic():
        for config in puzzles:
            PuzzleDefinition.objects.create(
                puzzle_id=str(config["id"]),
                kind=str(config.get("kind") or ""),
                config=config,
            )
    return len(puzzles)


# PUBLIC_INTERFACE
def puzzle_table() -> Dict[str, Dict[str, Any]]:
    """The active puzzle table (id -> descriptor) handed to runners."""
    return {p.puzzle_id: p.as_config() for p in PuzzleDefinition.objects.filter(is_active=True)}
