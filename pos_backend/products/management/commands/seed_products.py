from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from products.models import Product
from store.models import Store

User = get_user_model()


class Command(BaseCommand):
    help = "Seed a demo owner, store and catalog"

    def add_arguments(self, parser):
        parser.add_argument("--owner-email", default="owner@demo.test")
        parser.add_argument("--password", default="demo-pass-123")

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING("Seeding store and products..."))

        # -------------------------------
        # OWNER + STORE
        # -------------------------------
        owner = User.objects.filter(email=options["owner_email"]).first()
        if owner is None:
            owner = User.objects.create_user(
                email=options["owner_email"],
                password=options["password"],
                role=User.ROLE_OWNER,
            )

        store, _ = Store.objects.get_or_create(
            owner=owner,
            name="Toko Demo",
            defaults={"code": "DEMO"},
        )

        # -------------------------------
        # PRODUCTS
        # -------------------------------
        products_data = [
            # sku, name, category, price, cost, stock, batch_size
            ("BRS-5KG", "Beras 5kg", "Sembako", 75000, 68000, 12, 10),
            ("MYK-1L", "Minyak Goreng 1L", "Sembako", 18000, 15500, 40, 12),
            ("GLA-1KG", "Gula Pasir 1kg", "Sembako", 16000, 14000, 3, 10),
            ("KPI-SCH", "Kopi Sachet", "Minuman", 2000, 1500, 200, 20),
            ("MIE-GRG", "Mie Goreng", "Makanan", 3500, 2800, 0, 40),
        ]

        for sku, name, category, price, cost, stock, batch_size in products_data:
            Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "store": store,
                    "name": name,
                    "category": category,
                    "unit_price": price,
                    "cost_price": cost,
                    "stock": stock,
                    "batch_size": batch_size,
                },
            )

        self.stdout.write(
            self.style.SUCCESS(f"Seeded {len(products_data)} products for {store.name}.")
        )
