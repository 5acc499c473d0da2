"""Seed a small demo catalog for local development.

Re-running is idempotent: products are matched by title and left untouched
when they already exist.
"""

from decimal import Decimal

from catalog.models import Product
from django.core.management.base import BaseCommand
from django.db import transaction

PRODUCTS = [
    {
        "title": "Wireless Noise-Cancelling Headphones",
        "description": "Over-ear headphones with 30 hours of battery life.",
        "category": "Electronics",
        "price": Decimal("399.99"),
        "stock": 60,
        "image_url": "https://images.example.com/headphones.jpg",
    },
    {
        "title": "Bluetooth Speaker",
        "description": "Portable speaker with a water-resistant shell.",
        "category": "Electronics",
        "price": Decimal("79.99"),
        "stock": 150,
        "image_url": "https://images.example.com/speaker.jpg",
    },
    {
        "title": "Running Shoes",
        "description": "Lightweight trainers with a cushioned sole.",
        "category": "Sports",
        "price": Decimal("129.99"),
        "stock": 100,
        "image_url": "https://images.example.com/running-shoes.jpg",
    },
    {
        "title": "Organic Cotton T-Shirt",
        "description": "Crew neck tee in organic cotton.",
        "category": "Clothing",
        "price": Decimal("29.99"),
        "stock": 200,
        "image_url": "https://images.example.com/tshirt.jpg",
    },
]


class Command(BaseCommand):
    help = "Seed a demo catalog (products with price and stock)"

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding catalog data...")
        created = 0
        for data in PRODUCTS:
            _, was_created = Product.objects.get_or_create(
                title=data["title"],
                defaults={k: v for k, v in data.items() if k != "title"},
            )
            created += int(was_created)
        self.stdout.write(self.style.SUCCESS(f"Catalog seed complete ({created} new products)."))
