# carts/services/cart_service.py

"""
CART AGGREGATOR

Every public operation returns the refreshed cart:
- line prices / GST / titles re-read from the catalog (refresh_cart)
- applied coupon re-quoted against the fresh subtotal; dropped if it no longer applies

Variant resolution is shared with order creation (products.services.variants).

Coupon application here is a preview: used_count is only counted at order creation.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.db.models import Prefetch

from carts.models import Cart, CartItem
from carts.services.exceptions import CartItemNotFoundError, EmptyCartError
from carts.services.owner import Owner
from coupons.services.coupon_engine import validate_coupon
from coupons.services.exceptions import CouponError
from products.services.exceptions import InsufficientStockError
from products.services.variants import get_active_product, resolve_variant

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def _items_prefetch():
    return Prefetch(
        "items",
        queryset=CartItem.objects.select_related("product", "variant").order_by("created_at"),
    )


def find_cart(owner: Owner) -> Cart | None:
    return Cart.objects.filter(**owner.as_filter()).prefetch_related(_items_prefetch()).first()


def get_or_create_cart(owner: Owner) -> Cart:
    cart = find_cart(owner)
    if cart is not None:
        return cart

    try:
        with transaction.atomic():
            cart = Cart(user=owner.user, guest_session_id=owner.guest_session_id)
            cart.save()
    except IntegrityError:
        # Concurrent first-add for the same owner.
        cart = Cart.objects.get(**owner.as_filter())
    return cart


def _reload(cart: Cart) -> Cart:
    return Cart.objects.prefetch_related(_items_prefetch()).get(pk=cart.pk)


def _check_stock(variant, quantity: int) -> None:
    if not variant.is_active or int(variant.stock) < quantity:
        raise InsufficientStockError(sku=variant.sku, requested=quantity, available=int(variant.stock))


def refresh_cart(cart: Cart) -> Cart:
    """
    Live snapshot refresh + coupon re-quote.
    """
    cart = _reload(cart)

    stale = []
    for item in cart.items.all():
        if item.take_snapshot():
            stale.append(item)

    if stale:
        CartItem.objects.bulk_update(
            stale,
            ["variant_sku", "size", "color", "unit_price", "mrp", "gst_rate", "title", "product_slug", "image_url"],
        )

    if cart.coupon_code:
        try:
            quote = validate_coupon(cart.coupon_code, cart.subtotal_amount)
            discount = quote.discount
        except CouponError as exc:
            logger.info(
                "Cart coupon dropped on refresh",
                extra={"cart_id": str(cart.id), "code": cart.coupon_code, "reason": exc.code},
            )
            cart.coupon_code = ""
            discount = ZERO

        if discount != cart.discount_amount or not cart.coupon_code:
            cart.discount_amount = discount
            cart.save(update_fields=["coupon_code", "discount_amount", "updated_at"])

    return cart


@transaction.atomic
def add_item(
    owner: Owner,
    *,
    product_id,
    quantity: int = 1,
    sku: str = "",
    size: str = "",
    color: str = "",
) -> Cart:
    product = get_active_product(product_id)
    resolved = resolve_variant(product=product, sku=sku, size=size, color=color)
    variant = resolved.variant

    cart = get_or_create_cart(owner)

    item = CartItem.objects.select_for_update().filter(cart=cart, variant=variant).first()
    new_quantity = int(quantity) + (int(item.quantity) if item else 0)
    _check_stock(variant, new_quantity)

    if item is None:
        item = CartItem(
            cart=cart,
            product=product,
            variant=variant,
            size=size or "",
            color=color or "",
            quantity=new_quantity,
            unit_price=variant.selling_price,
        )
    else:
        item.quantity = new_quantity

    item.take_snapshot()
    item.save()

    logger.info(
        "Cart item added",
        extra={
            "cart_id": str(cart.id),
            "sku": variant.sku,
            "quantity": new_quantity,
            "matched_by": resolved.matched_by,
        },
    )
    return refresh_cart(cart)


def _get_item(cart: Cart, item_id) -> CartItem:
    item = CartItem.objects.select_related("product", "variant").filter(cart=cart, id=item_id).first()
    if item is None:
        raise CartItemNotFoundError()
    return item


@transaction.atomic
def update_item_quantity(
    cart: Cart,
    *,
    item_id,
    quantity: int,
    sku: str = "",
    size: str = "",
    color: str = "",
) -> Cart:
    item = _get_item(cart, item_id)

    if int(quantity) <= 0:
        item.delete()
        return refresh_cart(cart)

    if sku or size or color:
        resolved = resolve_variant(product=item.product, sku=sku, size=size, color=color)
        if resolved.variant.pk != item.variant_id:
            # Switching to a variant already in the cart merges into that line.
            existing = CartItem.objects.filter(cart=cart, variant=resolved.variant).exclude(pk=item.pk).first()
            if existing is not None:
                quantity = int(quantity) + int(existing.quantity)
                existing.delete()
            item.variant = resolved.variant
            item.size = size or ""
            item.color = color or ""

    _check_stock(item.variant, int(quantity))
    item.quantity = int(quantity)
    item.take_snapshot()
    item.save()

    return refresh_cart(cart)


@transaction.atomic
def remove_item(cart: Cart, *, item_id) -> Cart:
    _get_item(cart, item_id).delete()
    return refresh_cart(cart)


@transaction.atomic
def clear_cart(cart: Cart) -> Cart:
    cart.items.all().delete()
    cart.coupon_code = ""
    cart.discount_amount = ZERO
    cart.save(update_fields=["coupon_code", "discount_amount", "updated_at"])
    return refresh_cart(cart)


def apply_coupon(cart: Cart, *, code: str) -> Cart:
    """
    Preview only. Raises CouponError (cart untouched) when the code does not apply.
    """
    cart = refresh_cart(cart)
    if not cart.items.all():
        raise EmptyCartError("Add items before applying a coupon")

    quote = validate_coupon(code, cart.subtotal_amount)

    cart.coupon_code = quote.code
    cart.discount_amount = quote.discount
    cart.save(update_fields=["coupon_code", "discount_amount", "updated_at"])
    return refresh_cart(cart)


def remove_coupon(cart: Cart) -> Cart:
    cart.coupon_code = ""
    cart.discount_amount = ZERO
    cart.save(update_fields=["coupon_code", "discount_amount", "updated_at"])
    return refresh_cart(cart)
