from __future__ import annotations

from typing import Any, Dict

from django.db import models


# PUBLIC_INTERFACE
class TimeStampedModel(models.Model):
    """Abstract base model providing created/updated timestamps.

    Notes:
        Keep this abstract model free of any logic that would access the Django
        app registry or execute queries at module import time.
    """
    created_at = models.DateTimeField(auto_now_add=True, help_text="Time when the record was created.")
    updated_at = models.DateTimeField(auto_now=True, help_text="Time when the record was last updated.")

    class Meta:
        abstract = True


# PUBLIC_INTERFACE
class PuzzleDefinition(TimeStampedModel):
    """A puzzle descriptor in the host's puzzle table (content, not save state).

    Fields:
    - puzzle_id: reference used by scenes and list steps
    - kind: interaction/validation strategy (phrase, code, quiz, ...)
    - title: display title for the admin and the puzzle list
    - config: the full JSON descriptor handed to the puzzle framework
    - is_active: inactive puzzles are hidden from the table
    """
    puzzle_id = models.CharField(max_length=64, unique=True, db_index=True, help_text="Reference id.")
    kind = models.CharField(max_length=16, db_index=True, help_text="Puzzle kind.")
    title = models.CharField(max_length=128, blank=True, default="", help_text="Display title.")
    config = models.JSONField(default=dict, help_text="Puzzle descriptor (JSON).")
    is_active = models.BooleanField(default=True, help_text="If false, the puzzle cannot be launched.")

    class Meta:
        ordering = ["puzzle_id"]
        verbose_name = "Puzzle"
        verbose_name_plural = "Puzzles"

    def save(self, *args, **kwargs):
        # The descriptor is the source of truth for kind and id.
        self.puzzle_id = (self.puzzle_id or "").strip()
        config = dict(self.config or {})
        if config.get("kind"):
            self.kind = str(config["kind"]).strip().lower()
        else:
            config["kind"] = (self.kind or "").strip().lower()
        config["id"] = self.puzzle_id
        if not self.title and isinstance(config.get("title"), str):
            self.title = config["title"][:128]
        self.config = config
        super().save(*args, **kwargs)

    def as_config(self) -> Dict[str, Any]:
        data = dict(self.config or {})
        data.setdefault("id", self.puzzle_id)
        data.setdefault("kind", self.kind)
        return data

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.puzzle_id} ({self.kind})"
