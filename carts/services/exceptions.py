# carts/services/exceptions.py

from rest_framework import status

from backend.errors import DomainError


class CartError(DomainError):
    code = "CART_ERROR"


class OwnerRequiredError(CartError):
    code = "OWNER_REQUIRED"
    default_message = "Authenticate or provide a guest session id"


class CartItemNotFoundError(CartError):
    code = "CART_ITEM_NOT_FOUND"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "Cart item not found"


class EmptyCartError(CartError):
    code = "EMPTY_CART"
    default_message = "Cart is empty"
