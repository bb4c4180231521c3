from __future__ import annotations

from dataclasses import dataclass, field

from django.db import transaction

from .models import Resource, ResourceType, resource_key


@dataclass(frozen=True)
class ResourceSeed:
    resource_type: str
    slug: str
    name: str
    display_order: int
    capacity: int | None = None
    facilities: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return resource_key(self.resource_type, self.slug)


DEFAULT_RESOURCES: list[ResourceSeed] = [
    ResourceSeed(
        resource_type=ResourceType.VENUE,
        slug="auditorium",
        name="Auditorium",
        capacity=500,
        facilities=["projector", "sound system", "stage", "A/C", "drum kit"],
        display_order=10,
    ),
    ResourceSeed(
        resource_type=ResourceType.VENUE,
        slug="impact-greens",
        name="Impact Greens",
        capacity=1000,
        facilities=["kitchen", "outdoor seating"],
        display_order=20,
    ),
    ResourceSeed(
        resource_type=ResourceType.VENUE,
        slug="ramanujan-hall",
        name="Ramanujan Hall",
        capacity=100,
        facilities=["projector", "whiteboard", "sound system"],
        display_order=30,
    ),
    ResourceSeed(
        resource_type=ResourceType.VENUE,
        slug="visveswaraya-auditorium",
        name="Visveswaraya Auditorium",
        capacity=300,
        facilities=["projector", "sound system", "A/C", "stage"],
        display_order=40,
    ),
    ResourceSeed(
        resource_type=ResourceType.VENUE,
        slug="cse-seminar-hall",
        name="CSE Seminar Hall",
        capacity=80,
        facilities=["projector", "whiteboard", "A/C", "smart board"],
        display_order=50,
    ),
    ResourceSeed(
        resource_type=ResourceType.BUS,
        slug="bus-1",
        name="Bus 1",
        capacity=45,
        facilities=["A/C"],
        display_order=10,
    ),
    ResourceSeed(
        resource_type=ResourceType.BUS,
        slug="bus-2",
        name="Bus 2",
        capacity=50,
        facilities=["A/C", "charging ports"],
        display_order=20,
    ),
    ResourceSeed(resource_type=ResourceType.TURF, slug="football", name="Football Area", display_order=10),
    ResourceSeed(resource_type=ResourceType.TURF, slug="badminton", name="Badminton Area", display_order=20),
    ResourceSeed(resource_type=ResourceType.TURF, slug="table-tennis", name="Table Tennis Area", display_order=30),
]


def resource_label(key: str) -> str:
    """
    Human label for a resource key, falling back to the key itself.
    """
    resource_type, _, slug = key.partition(":")
    resource = (
        Resource.objects.filter(resource_type__iexact=resource_type, slug__iexact=slug).only("name").first()
    )
    if resource is not None:
        return resource.name
    seed = next((rs for rs in DEFAULT_RESOURCES if rs.key == key), None)
    return seed.name if seed else key


def seed_default_resources(*, update_existing: bool = False) -> dict[str, int]:
    """
    Idempotently seed the default resource catalog.

    - If update_existing is False: creates missing resources only (does not overwrite edits).
    - If update_existing is True: updates existing resources to match defaults.
    """
    created = 0
    updated = 0
    skipped = 0

    with transaction.atomic():
        for rs in DEFAULT_RESOURCES:
            defaults = {
                "name": rs.name,
                "capacity": rs.capacity,
                "facilities": rs.facilities,
                "display_order": rs.display_order,
                "is_active": True,
            }
            lookup = {"resource_type": rs.resource_type, "slug": rs.slug}

            if update_existing:
                _, was_created = Resource.objects.update_or_create(**lookup, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    updated += 1
            else:
                _, was_created = Resource.objects.get_or_create(**lookup, defaults=defaults)
                if was_created:
                    created += 1
                else:
                    skipped += 1

    return {"created": created, "updated": updated, "skipped": skipped}
