# products/services/variants.py

"""
VARIANT RESOLUTION

Used by the cart (add/update) and by order creation to turn a client line into
a concrete ProductVariant.

Order of preference:
1) exact SKU (must belong to the product); a "<product id>-<size>-<color>"
   placeholder SKU is read as size/color instead
2) size/color matched against the variant columns / attributes map
3) the product's first variant (lowest position)

(3) exists for legacy clients that send neither SKU nor attributes. It can pick
the wrong item, so every fallback is logged at WARNING with the request shape.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.core.exceptions import ValidationError as DjangoValidationError

from products.models import Product, ProductVariant
from products.services.exceptions import ProductNotFoundError, VariantNotFoundError

logger = logging.getLogger(__name__)

MATCH_SKU = "sku"
MATCH_ATTRIBUTES = "attributes"
MATCH_FALLBACK = "first_variant"


@dataclass(frozen=True)
class ResolvedVariant:
    product: Product
    variant: ProductVariant
    matched_by: str

    @property
    def is_approximate(self) -> bool:
        return self.matched_by == MATCH_FALLBACK


def get_active_product(product_id) -> Product:
    try:
        return Product.objects.get(id=product_id, is_active=True)
    except (Product.DoesNotExist, DjangoValidationError, ValueError):
        raise ProductNotFoundError(f"Product {product_id} not found")


def _norm(value) -> str:
    return str(value or "").strip().lower()


def _matches(variant: ProductVariant, *, size: str, color: str) -> bool:
    if size and _norm(variant.attribute("size")) != size:
        return False
    if color and _norm(variant.attribute("color")) != color:
        return False
    return True


def _placeholder_attributes(product: Product, sku: str) -> tuple[str, str] | None:
    """
    Clients without a real SKU send "<product id>-<size>-<color>"; "default"
    means unspecified. Returns (size, color), or None for any other SKU.
    """
    prefix = str(product.id)
    if sku != prefix and not sku.startswith(f"{prefix}-"):
        return None
    parts = sku[len(prefix):].lstrip("-").split("-", 1)
    values = [p if _norm(p) != "default" else "" for p in parts]
    values += [""] * (2 - len(values))
    return values[0], values[1]


def resolve_variant(*, product: Product, sku: str = "", size: str = "", color: str = "") -> ResolvedVariant:
    variants = list(product.variants.filter(is_active=True).order_by("position", "created_at"))
    if not variants:
        raise VariantNotFoundError(f"Product {product.id} has no purchasable variants")

    sku = str(sku or "").strip()
    if sku:
        for variant in variants:
            if variant.sku == sku:
                return ResolvedVariant(product=product, variant=variant, matched_by=MATCH_SKU)

        placeholder = _placeholder_attributes(product, sku)
        if placeholder is None:
            raise VariantNotFoundError(f"Variant {sku} not found for product {product.id}")
        size, color = size or placeholder[0], color or placeholder[1]

    size_n, color_n = _norm(size), _norm(color)
    if size_n or color_n:
        for variant in variants:
            if _matches(variant, size=size_n, color=color_n):
                return ResolvedVariant(product=product, variant=variant, matched_by=MATCH_ATTRIBUTES)

    fallback = variants[0]
    logger.warning(
        "Variant resolved by first-variant fallback",
        extra={
            "product_id": str(product.id),
            "variant_sku": fallback.sku,
            "requested_size": size,
            "requested_color": color,
        },
    )
    return ResolvedVariant(product=product, variant=fallback, matched_by=MATCH_FALLBACK)
