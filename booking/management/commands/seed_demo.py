"""
seed_demo.py
------------
Seeds (creates or updates) a demo business: one tenant, one salon, a service
catalog, staff members and their weekly schedules. Safe to run repeatedly; it
upserts by slug / email / name.

Usage:
    python manage.py seed_demo
    python manage.py seed_demo --tenant "Hair by Lasheka" --slug lasheka
"""

from datetime import time
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from booking.models import Salon, Service, Staff, Tenant
from staff.models import StaffSchedule


CATALOG = [
    {"name": "Knotless Braids - Medium", "description": "Knotless/Medium", "duration_minutes": 360, "price": Decimal("7500.00")},
    {"name": "Stitch Braids - 6-8",      "description": "Stitch Braids",   "duration_minutes": 120, "price": Decimal("5000.00")},
    {"name": "Cornrows",                 "description": "Natural hair",    "duration_minutes": 90,  "price": Decimal("2500.00")},
    {"name": "Twists (Natural Hair)",    "description": "Natural hair",    "duration_minutes": 90,  "price": Decimal("2000.00")},
    {"name": "Blow-dry hair",            "description": "Extra",           "duration_minutes": 30,  "price": Decimal("500.00")},
    {"name": "Haircut",                  "description": "Cut and style",   "duration_minutes": 60,  "price": Decimal("1500.00")},
]

STAFF = [
    {"name": "Lasheka", "email": "owner@salon.local", "role": Staff.Role.OWNER},
    {"name": "Maria", "email": "maria@salon.local", "role": Staff.Role.STAFF},
    {"name": "Dana", "email": "dana@salon.local", "role": Staff.Role.STAFF},
]

# Monday-Friday 09:00-18:00 with a 13:00-14:00 lunch; Saturday 10:00-15:00.
WEEK = {
    **{day: (time(9, 0), time(18, 0), time(13, 0), time(14, 0)) for day in range(1, 6)},
    6: (time(10, 0), time(15, 0), None, None),
}


class Command(BaseCommand):
    help = "Seed or update a demo salon with services, staff and weekly schedules."

    def add_arguments(self, parser):
        parser.add_argument("--tenant", default="Demo Salon Group")
        parser.add_argument("--slug", default="demo")

    @transaction.atomic
    def handle(self, *args, **options):
        tenant, _ = Tenant.objects.get_or_create(slug=options["slug"], defaults={"name": options["tenant"]})
        salon, _ = Salon.objects.get_or_create(tenant=tenant, name="Main Street", defaults={"phone": "5550100"})

        created = 0
        updated = 0
        for item in CATALOG:
            svc, is_created = Service.objects.get_or_create(
                salon=salon,
                name=item["name"],
                defaults={
                    "tenant": tenant,
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

        schedules = 0
        for person in STAFF:
            member, _ = Staff.objects.update_or_create(
                email=person["email"],
                defaults={"tenant": tenant, "salon": salon, "name": person["name"], "role": person["role"]},
            )
            for day, (start, end, break_start, break_end) in WEEK.items():
                _, is_created = StaffSchedule.objects.get_or_create(
                    staff=member,
                    day_of_week=day,
                    specific_date=None,
                    is_active=True,
                    defaults={
                        "start_time": start,
                        "end_time": end,
                        "break_start": break_start,
                        "break_end": break_end,
                    },
                )
                schedules += int(is_created)

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed complete. Tenant={tenant.slug}, Services created={created} updated={updated}, "
                f"Staff={len(STAFF)}, Schedules created={schedules}"
            )
        )
