from django.contrib import admin

from .models import PuzzleDefinition


@admin.register(PuzzleDefinition)
class PuzzleDefinitionAdmin(admin.ModelAdmin):
    list_display = ("puzzle_id", "kind", "title", "is_active", "updated_at")
    list_filter = ("is_active", "kind")
    search_fields = ("puzzle_id", "title")
    ordering = ("puzzle_id",)
    readonly_fields = ("created_at", "updated_at")
