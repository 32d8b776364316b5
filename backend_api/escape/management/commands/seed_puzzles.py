from django.core.management.base import BaseCommand, CommandError

from escape.models import PuzzleDefinition
from escape.seed_utils import DEFAULT_SEED, load_puzzle_file


class Command(BaseCommand):
    help = "Seed the puzzle table with the sample puzzles (or from a JSON file)."

    def add_arguments(self, parser):
        parser.add_argument("--file", help="JSON file with a list (or id mapping) of puzzle descriptors.")
        parser.add_argument(
            "--update", action="store_true", help="Overwrite puzzles that already exist instead of skipping them."
        )

    def handle(self, *args, **options):
        # PUBLIC_INTERFACE
        # This command is idempotent and safe to run multiple times.
        if options.get("file"):
            try:
                puzzles = load_puzzle_file(options["file"])
            except (OSError, ValueError) as exc:
                raise CommandError(f"Cannot read puzzles from {options['file']}: {exc}")
        else:
            puzzles = DEFAULT_SEED

        created = updated = skipped = 0
        for config in puzzles:
            puzzle_id = str(config.get("id") or "").strip()
            if not puzzle_id:
                self.stdout.write(self.style.WARNING("Skipping a puzzle without an id."))
                skipped += 1
                continue
            existing = PuzzleDefinition.objects.filter(puzzle_id=puzzle_id).first()
            if existing is None:
                PuzzleDefinition.objects.create(puzzle_id=puzzle_id, kind=str(config.get("kind") or ""), config=config)
                created += 1
            elif options.get("update"):
                existing.config = config
                existing.kind = str(config.get("kind") or existing.kind)
                existing.save()
                updated += 1
            else:
                skipped += 1

        self.stdout.write(self.style.SUCCESS(f"Puzzles created: {created}, updated: {updated}, skipped: {skipped}."))
