from .manage import CouponViewSet, PromotionViewSet
from .validate import CouponValidateView

__all__ = [
    "CouponValidateView",
    "CouponViewSet",
    "PromotionViewSet",
]
