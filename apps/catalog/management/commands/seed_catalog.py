"""
Management command: seed shipping methods and tax brackets.

Usage:
    python manage.py seed_catalog
    python manage.py seed_catalog --demo-customers 200   # load-test accounts too
"""

from decimal import Decimal
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from apps.catalog.models import Product, ShippingMethod, TaxRate


SHIPPING_METHODS = [
    # name,            description,                       cost,     days, min_free
    ("Standard",       "Countrywide courier",             "250.00",  5,   "0"),
    ("Express",        "Next-day within Nairobi",         "500.00",  2,   "0"),
    ("Overnight",      "Delivered before 10am",           "900.00",  1,   "0"),
    ("Free Shipping",  "Free on orders above Ksh 5,000",  "250.00",  7,   "5000.00"),
]

TAX_BRACKETS = [
    ("0.00",      "2000.00",    "0.03"),
    ("2000.01",   "10000.00",   "0.05"),
    ("10000.01",  "9999999.00", "0.08"),
]

DEMO_PASSWORD = "Flash@Sale2024"


class Command(BaseCommand):
    help = "Seed default shipping methods and tax brackets"

    def add_arguments(self, parser):
        parser.add_argument(
            "--demo-customers", type=int, default=0,
            help="Also create a demo product, a store admin and N verified load-test customers",
        )

    def handle(self, *args, **options):
        created_methods = 0
        for name, description, cost, days, min_free in SHIPPING_METHODS:
            _, created = ShippingMethod.objects.get_or_create(
                name=name,
                defaults={
                    "description":    description,
                    "cost":           Decimal(cost),
                    "estimated_days": days,
                    "min_free":       Decimal(min_free),
                },
            )
            if created:
                created_methods += 1

        created_brackets = 0
        for lo, hi, rate in TAX_BRACKETS:
            _, created = TaxRate.objects.get_or_create(
                min_amount=Decimal(lo),
                max_amount=Decimal(hi),
                defaults={"rate": Decimal(rate)},
            )
            if created:
                created_brackets += 1

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {created_methods} shipping methods and {created_brackets} tax brackets."
        ))

        if options["demo_customers"]:
            self._seed_demo(options["demo_customers"])

    def _seed_demo(self, count):
        Customer = get_user_model()
        product, _ = Product.objects.get_or_create(
            sku="LOAD-001",
            defaults={"title": "Flash Sale Kikoy", "price": Decimal("1500.00"), "stock": 1_000_000},
        )
        if not Customer.objects.filter(email="admin@storefront.test").exists():
            Customer.objects.create_superuser("admin@storefront.test", DEMO_PASSWORD, full_name="Store Admin")

        created = 0
        for n in range(1, count + 1):
            email = f"loadtest{n}@example.co.ke"
            if Customer.objects.filter(email=email).exists():
                continue
            Customer.objects.create_user(
                email=email, password=DEMO_PASSWORD,
                full_name=f"Load Tester {n}", is_email_verified=True,
            )
            created += 1

        self.stdout.write(self.style.SUCCESS(
            f"Demo product id={product.id} price={product.price}; {created} load-test customers created."
        ))
