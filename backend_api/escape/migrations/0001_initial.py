from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PuzzleDefinition",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True, help_text="Time when the record was created.")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Time when the record was last updated.")),
                ("puzzle_id", models.CharField(db_index=True, help_text="Reference id.", max_length=64, unique=True)),
                ("kind", models.CharField(db_index=True, help_text="Puzzle kind.", max_length=16)),
                ("title", models.CharField(blank=True, default="", help_text="Display title.", max_length=128)),
                ("config", models.JSONField(default=dict, help_text="Puzzle descriptor (JSON).")),
                ("is_active", models.BooleanField(default=True, help_text="If false, the puzzle cannot be launched.")),
            ],
            options={
                "verbose_name": "Puzzle",
                "verbose_name_plural": "Puzzles",
                "ordering": ["puzzle_id"],
            },
        ),
    ]
