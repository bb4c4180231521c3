from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from bookings.models import Resource
from bookings.seed import DEFAULT_RESOURCES, resource_label, seed_default_resources


class SeedResourcesTest(TestCase):
    """Resource catalog seeding"""

    def test_seed_is_idempotent(self):
        first = seed_default_resources()
        second = seed_default_resources()

        self.assertEqual(first["created"], len(DEFAULT_RESOURCES))
        self.assertEqual(second, {"created": 0, "updated": 0, "skipped": len(DEFAULT_RESOURCES)})
        self.assertEqual(Resource.objects.count(), len(DEFAULT_RESOURCES))

    def test_update_existing_restores_defaults(self):
        seed_default_resources()
        Resource.objects.filter(slug="ramanujan-hall").update(name="Renamed")

        result = seed_default_resources(update_existing=True)

        self.assertEqual(result["updated"], len(DEFAULT_RESOURCES))
        self.assertEqual(resource_label("venue:ramanujan-hall"), "Ramanujan Hall")

    def test_catalog_covers_venues_buses_and_turf(self):
        seed_default_resources()
        keys = {resource.key for resource in Resource.objects.all()}
        self.assertIn("venue:ramanujan-hall", keys)
        self.assertIn("bus:bus-2", keys)
        self.assertIn("turf:table-tennis", keys)

    def test_resource_label_falls_back(self):
        self.assertEqual(resource_label("turf:football"), "Football Area")
        self.assertEqual(resource_label("venue:unknown"), "venue:unknown")

    def test_management_command(self):
        out = StringIO()
        call_command("seed_resources", stdout=out)
        self.assertIn(f"{len(DEFAULT_RESOURCES)} created", out.getvalue())
