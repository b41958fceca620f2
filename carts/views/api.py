# carts/views/api.py

"""
CART API

Owner: authenticated user, else guest session (X-Guest-Session-Id header or
guest_session_id param). Every response is the refreshed cart.

Money is server-owned: prices come from the catalog, never from the client.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from carts.serializers import (
    AddCartItemInputSerializer,
    ApplyCouponInputSerializer,
    CartSerializer,
    UpdateCartItemInputSerializer,
    empty_cart_payload,
)
from carts.services import cart_service
from carts.services.exceptions import CartItemNotFoundError, EmptyCartError
from carts.services.owner import resolve_owner

GUEST_SESSION_PARAM = OpenApiParameter(
    name="X-Guest-Session-Id",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Guest cart key when not authenticated.",
)


def _cart_response(cart):
    return Response(CartSerializer(cart).data)


class CartView(APIView):
    """
    GET    current cart (empty payload when none exists yet)
    DELETE clear all items + coupon
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(tags=["Cart"], parameters=[GUEST_SESSION_PARAM], responses={200: CartSerializer})
    def get(self, request):
        owner = resolve_owner(request)
        cart = cart_service.find_cart(owner)
        if cart is None:
            return Response(empty_cart_payload(owner))
        return _cart_response(cart_service.refresh_cart(cart))

    @extend_schema(tags=["Cart"], parameters=[GUEST_SESSION_PARAM], responses={200: CartSerializer})
    def delete(self, request):
        owner = resolve_owner(request)
        cart = cart_service.find_cart(owner)
        if cart is None:
            return Response(empty_cart_payload(owner))
        return _cart_response(cart_service.clear_cart(cart))


class CartItemsView(APIView):
    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(
        tags=["Cart"],
        parameters=[GUEST_SESSION_PARAM],
        request=AddCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Add a product (merges quantity when the same variant is already in the cart).",
    )
    def post(self, request):
        serializer = AddCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = cart_service.add_item(
            resolve_owner(request),
            product_id=data["product_id"],
            quantity=data["quantity"],
            sku=data["variant_sku"],
            size=data["size"],
            color=data["color"],
        )
        return _cart_response(cart)


class CartItemDetailView(APIView):
    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    def _cart(self, request):
        cart = cart_service.find_cart(resolve_owner(request))
        if cart is None:
            raise CartItemNotFoundError()
        return cart

    @extend_schema(
        tags=["Cart"],
        parameters=[GUEST_SESSION_PARAM],
        request=UpdateCartItemInputSerializer,
        responses={200: CartSerializer},
        description="Set quantity (0 removes the line); optional sku/size/color switches variant.",
    )
    def patch(self, request, item_id):
        serializer = UpdateCartItemInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        cart = cart_service.update_item_quantity(
            self._cart(request),
            item_id=item_id,
            quantity=data["quantity"],
            sku=data["variant_sku"],
            size=data["size"],
            color=data["color"],
        )
        return _cart_response(cart)

    @extend_schema(tags=["Cart"], parameters=[GUEST_SESSION_PARAM], responses={200: CartSerializer})
    def delete(self, request, item_id):
        return _cart_response(cart_service.remove_item(self._cart(request), item_id=item_id))


class CartCouponView(APIView):
    """
    POST   apply (preview; usage is counted at order creation)
    DELETE remove
    """

    permission_classes = [AllowAny]
    serializer_class = CartSerializer

    @extend_schema(
        tags=["Cart"],
        parameters=[GUEST_SESSION_PARAM],
        request=ApplyCouponInputSerializer,
        responses={200: CartSerializer},
    )
    def post(self, request):
        serializer = ApplyCouponInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        cart = cart_service.find_cart(resolve_owner(request))
        if cart is None:
            raise EmptyCartError("Add items before applying a coupon")

        return _cart_response(cart_service.apply_coupon(cart, code=serializer.validated_data["code"]))

    @extend_schema(tags=["Cart"], parameters=[GUEST_SESSION_PARAM], responses={200: CartSerializer})
    def delete(self, request):
        owner = resolve_owner(request)
        cart = cart_service.find_cart(owner)
        if cart is None:
            return Response(empty_cart_payload(owner))
        return _cart_response(cart_service.remove_coupon(cart))
