"""
seed_services.py
----------------
Seeds (creates or updates) the cleaning service catalog. You can run this any
time; it will upsert by unique name.

Usage:
    python manage.py seed_services
"""

from decimal import Decimal
from django.core.management.base import BaseCommand
from booking.models import Service


CATALOG = [
    # Residential
    {"name": "Standard Clean - Apartment", "description": "Kitchen, bathrooms, dusting, floors", "duration_minutes": 120, "price": Decimal("90.00")},
    {"name": "Standard Clean - House",     "description": "Kitchen, bathrooms, dusting, floors", "duration_minutes": 180, "price": Decimal("140.00")},
    {"name": "Deep Clean",                 "description": "Inside appliances, baseboards, grout", "duration_minutes": 300, "price": Decimal("260.00")},
    {"name": "Move In / Move Out",         "description": "Empty home, cupboards and fixtures",   "duration_minutes": 360, "price": Decimal("320.00")},

    # Commercial
    {"name": "Office Clean - Small",       "description": "Up to 10 desks",                       "duration_minutes": 90,  "price": Decimal("110.00")},
    {"name": "Office Clean - Large",       "description": "Over 10 desks",                        "duration_minutes": 240, "price": Decimal("280.00")},

    # Add-ons
    {"name": "Window Cleaning",            "description": "Interior windows",                     "duration_minutes": 60,  "price": Decimal("45.00")},
    {"name": "Carpet Shampoo",             "description": "Per room",                             "duration_minutes": 60,  "price": Decimal("55.00")},
]


class Command(BaseCommand):
    help = "Seed or update the cleaning service catalog."

    def handle(self, *args, **options):
        created = 0
        updated = 0

        for item in CATALOG:
            svc, is_created = Service.objects.get_or_create(
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

        self.stdout.write(self.style.SUCCESS(f"Seed complete. Created={created}, Updated={updated}"))
