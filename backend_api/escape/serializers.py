from __future__ import annotations

from typing import Any, Dict

from rest_framework import serializers

EVENT_CHOICES = ["click", "input", "keydown", "pointerdown", "pointermove", "pointerup"]
STATUS_CHOICES = ["idle", "mounted", "held", "resolved", "unmounted"]


# PUBLIC_INTERFACE
class RectSerializer(serializers.Serializer):
    """Percentage rectangle (x, y, w, h) inside the scene."""

    x = serializers.FloatField(min_value=0, max_value=100)
    y = serializers.FloatField(min_value=0, max_value=100)
    w = serializers.FloatField(min_value=0, max_value=100)
    h = serializers.FloatField(min_value=0, max_value=100)


# PUBLIC_INTERFACE
class InstanceOptionsSerializer(serializers.Serializer):
    """Per-launch puzzle options."""

    block_until_solved = serializers.BooleanField(required=False, default=False)
    multi_select = serializers.BooleanField(required=False, allow_null=True, default=None)
    aggregate_only = serializers.BooleanField(required=False, default=False)
    reset_on_fail = serializers.BooleanField(required=False, default=True)
    show_error_toast = serializers.BooleanField(required=False, allow_null=True, default=None)


# PUBLIC_INTERFACE
class StartSessionRequestSerializer(serializers.Serializer):
    """Request payload to launch a puzzle.

    Fields:
    - ref (optional): id of a puzzle in the puzzle table
    - config (optional): inline puzzle descriptor; takes precedence over ref
    - instance_options (optional): block_until_solved, multi_select, aggregate_only, ...
    - background (optional): image behind the puzzle window
    - rect (optional): placement of the puzzle container in the scene
    """

    ref = serializers.CharField(required=False, allow_blank=False, max_length=64)
    config = serializers.DictField(required=False)
    instance_options = InstanceOptionsSerializer(required=False)
    background = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    rect = RectSerializer(required=False)

    def validate_config(self, value: Dict[str, Any]) -> Dict[str, Any]:
        kind = str(value.get("kind") or "").strip()
        if not kind:
            raise serializers.ValidationError("Inline config must declare a kind.")
        return value

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if not attrs.get("config") and not attrs.get("ref"):
            raise serializers.ValidationError("Provide either ref or config.")
        return attrs


# PUBLIC_INTERFACE
class EventRequestSerializer(serializers.Serializer):
    """One user interaction.

    Fields:
    - event: click | input | keydown | pointerdown | pointermove | pointerup
    - target / selector: element data-id, or a CSS selector within the scene
    - value (input), key (keydown), x / y (pointer events, percent of the board)
    - advance_ms: extra virtual milliseconds to let timers run after the event
    """

    event = serializers.ChoiceField(choices=EVENT_CHOICES)
    target = serializers.CharField(required=False, allow_blank=False)
    selector = serializers.CharField(required=False, allow_blank=False)
    value = serializers.CharField(required=False, allow_blank=True)
    key = serializers.CharField(required=False)
    x = serializers.FloatField(required=False)
    y = serializers.FloatField(required=False)
    advance_ms = serializers.IntegerField(required=False, min_value=0, max_value=60000, default=0)

    def validate(self, attrs: Dict[str, Any]) -> Dict[str, Any]:
        if not attrs.get("target") and not attrs.get("selector"):
            raise serializers.ValidationError("Provide either target or selector.")
        return attrs


# PUBLIC_INTERFACE
class PuzzleResultSerializer(serializers.Serializer):
    ok = serializers.BooleanField()
    value = serializers.JSONField(allow_null=True)


# PUBLIC_INTERFACE
class SessionResponseSerializer(serializers.Serializer):
    """Session state after a request."""

    session_id = serializers.CharField()
    puzzle_id = serializers.CharField()
    kind = serializers.CharField()
    status = serializers.ChoiceField(choices=STATUS_CHOICES)
    held_count = serializers.IntegerField()
    result = PuzzleResultSerializer(allow_null=True)
    toasts = serializers.ListField(child=serializers.CharField())
    tree = serializers.DictField(required=False, help_text="Serialized element tree of the scene.")


# PUBLIC_INTERFACE
class PuzzleSummarySerializer(serializers.Serializer):
    """Puzzle table entry."""

    puzzle_id = serializers.CharField()
    kind = serializers.CharField()
    title = serializers.CharField(allow_blank=True)
