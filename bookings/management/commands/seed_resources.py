from __future__ import annotations

from django.core.management.base import BaseCommand

from bookings.seed import seed_default_resources


class Command(BaseCommand):
    help = "Seed the default venues, buses and turf areas (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--update-existing",
            action="store_true",
            help="Overwrite existing resources with the default catalog values.",
        )

    def handle(self, *args, **options):
        result = seed_default_resources(update_existing=options["update_existing"])
        self.stdout.write(
            self.style.SUCCESS(
                "Resources seeded: "
                f"{result['created']} created, {result['updated']} updated, {result['skipped']} unchanged"
            )
        )
