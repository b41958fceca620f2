# coupons/services/exceptions.py

from rest_framework import status

from backend.errors import DomainError


class CouponError(DomainError):
    """
    Coupon failures keep the storefront shape:
        {"success": false, "message": ..., "error": {"code", "message"}}
    """

    code = "COUPON_ERROR"

    def payload(self) -> dict:
        body = super().payload()
        body["success"] = False
        body["message"] = self.message
        return body


class InvalidCouponError(CouponError):
    code = "INVALID_COUPON"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "The coupon code you entered is invalid or does not exist"


class InactiveCouponError(CouponError):
    code = "INACTIVE_COUPON"
    default_message = "This coupon is not valid at this time"


class CouponUsageExceededError(CouponError):
    code = "COUPON_USAGE_EXCEEDED"
    default_message = "This coupon has reached its maximum usage limit"


class OrderValueTooLowError(CouponError):
    code = "ORDER_VALUE_TOO_LOW"

    def __init__(self, message: str = "", *, min_order_value=None):
        self.min_order_value = min_order_value
        super().__init__(
            message or f"Minimum purchase of ₹{min_order_value} required for this coupon"
        )

    def payload(self) -> dict:
        body = super().payload()
        body["error"]["min_order_value"] = str(self.min_order_value)
        return body


class DuplicateCouponError(CouponError):
    code = "DUPLICATE_COUPON"
    http_status = status.HTTP_409_CONFLICT
    default_message = "Coupon code already exists"


class PromotionError(DomainError):
    code = "PROMOTION_ERROR"


class PromotionNotEligibleError(PromotionError):
    code = "PROMOTION_NOT_ELIGIBLE"


class NoRecipientsError(PromotionError):
    code = "NO_RECIPIENTS"
    http_status = status.HTTP_404_NOT_FOUND
    default_message = "No valid users found"
