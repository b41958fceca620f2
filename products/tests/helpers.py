# products/tests/helpers.py

"""
Catalog seeding helpers shared by cart / coupon / order tests.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from products.models import Product, ProductVariant


def make_product(
    *,
    title: str = "Cotton Kurta",
    gst_rate: Decimal = Decimal("5.00"),
    variants: list[dict] | None = None,
) -> Product:
    slug = f"{title.lower().replace(' ', '-')}-{uuid.uuid4().hex[:6]}"
    product = Product.objects.create(title=title, slug=slug, gst_rate=gst_rate)

    for position, row in enumerate(variants or [{}]):
        ProductVariant.objects.create(
            product=product,
            sku=row.get("sku") or f"SKU-{uuid.uuid4().hex[:8].upper()}",
            size=row.get("size", ""),
            color=row.get("color", ""),
            attributes=row.get("attributes", {}),
            selling_price=Decimal(str(row.get("price", "100.00"))),
            mrp=Decimal(str(row.get("mrp", row.get("price", "100.00")))),
            stock=row.get("stock", 10),
            position=position,
        )

    return product
