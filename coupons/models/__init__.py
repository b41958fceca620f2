from .coupon import Coupon
from .promotion import Promotion

__all__ = [
    "Coupon",
    "Promotion",
]
