"""
seed_salon.py
-------------
Seeds (creates or updates) a demo salon: base hours, a lunch break, a small
roster and a service catalog. Safe to run repeatedly; it upserts by name.

Usage:
    python manage.py seed_salon
    python manage.py seed_salon --name "Studio Noa" --owner dana --open 21:00 --close 02:00
"""

from datetime import time
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from booking.models import Salon, Service, Staff
from booking.services.slot_utils import to_minutes
from scheduling.models import Break, OperatingSchedule


CATALOG = [
    {"name": "Women's Haircut",    "description": "Cut & style",        "duration_minutes": 60,  "price": Decimal("180.00")},
    {"name": "Men's Haircut",      "description": "Cut",                "duration_minutes": 30,  "price": Decimal("90.00")},
    {"name": "Blow-dry",           "description": "Wash + blow-dry",    "duration_minutes": 30,  "price": Decimal("80.00")},
    {"name": "Root Color",         "description": "Color",              "duration_minutes": 90,  "price": Decimal("250.00")},
    {"name": "Highlights",         "description": "Color",              "duration_minutes": 120, "price": Decimal("450.00")},
    {"name": "Manicure",           "description": "Nails",              "duration_minutes": 45,  "price": Decimal("120.00")},
]

ROSTER = [
    ("Maya", "Stylist"),
    ("Yael", "Colorist"),
    ("Noam", "Barber"),
]


def _parse_time(value: str) -> time:
    if not to_minutes(value):
        raise CommandError(f"Invalid time '{value}'. Use HH:MM.")
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


class Command(BaseCommand):
    help = "Seed or update a demo salon with hours, roster and services."

    def add_arguments(self, parser):
        parser.add_argument("--name", default="Demo Salon")
        parser.add_argument("--owner", help="Username of the salon owner (must exist).")
        parser.add_argument("--open", dest="opening", default="09:00")
        parser.add_argument("--close", dest="closing", default="19:00")
        parser.add_argument("--closed", default="6", help="Comma-separated closed weekdays, 0=Sunday.")
        parser.add_argument("--no-staff", action="store_true", help="Seed without a roster.")

    def handle(self, *args, **options):
        owner = None
        if options["owner"]:
            owner = get_user_model().objects.filter(username=options["owner"]).first()
            if owner is None:
                raise CommandError(f"User '{options['owner']}' does not exist.")

        opening = _parse_time(options["opening"])
        closing = _parse_time(options["closing"])
        try:
            OperatingSchedule(opening_time=opening, closing_time=closing).clean()
        except ValidationError as e:
            raise CommandError("; ".join(e.messages))
        try:
            closed = [int(d) for d in options["closed"].split(",") if d.strip()]
        except ValueError:
            raise CommandError("--closed must be a list of weekday numbers 0-6.")

        salon, salon_created = Salon.objects.get_or_create(name=options["name"], defaults={"owner": owner})
        if owner and salon.owner_id != owner.pk:
            salon.owner = owner
            salon.save(update_fields=["owner"])

        OperatingSchedule.objects.update_or_create(
            salon=salon,
            defaults={"opening_time": opening, "closing_time": closing, "closed_weekdays": closed},
        )

        created = 0
        updated = 0
        for item in CATALOG:
            svc, is_created = Service.objects.get_or_create(
                salon=salon,
                name=item["name"],
                defaults={
                    "description": item["description"],
                    "duration_minutes": item["duration_minutes"],
                    "price": item["price"],
                    "active": True,
                },
            )
            if is_created:
                created += 1
                continue
            changed = False
            for field in ("description", "duration_minutes", "price"):
                if getattr(svc, field) != item[field]:
                    setattr(svc, field, item[field])
                    changed = True
            if not svc.active:
                svc.active = True
                changed = True
            if changed:
                svc.save()
                updated += 1

        if not options["no_staff"]:
            for name, role in ROSTER:
                Staff.objects.get_or_create(salon=salon, name=name, defaults={"role": role})

        if not opening <= time(13, 0) < closing:
            self.stdout.write("Lunch break skipped: 13:00 is outside the opening hours.")
        else:
            Break.objects.get_or_create(
                salon=salon,
                staff=None,
                start_time=time(13, 0),
                defaults={"end_time": time(13, 30), "reason": "Lunch"},
            )

        self.stdout.write(self.style.SUCCESS(
            f"Seed complete for '{salon.name}' (id={salon.pk}, new={salon_created}). "
            f"Services created={created}, updated={updated}"
        ))
