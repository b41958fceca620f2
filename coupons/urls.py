# coupons/urls.py

from django.urls import path
from rest_framework.routers import SimpleRouter

from coupons.views import CouponValidateView, CouponViewSet, PromotionViewSet

app_name = "coupons"

router = SimpleRouter()
router.register(r"promotions", PromotionViewSet, basename="promotion")
router.register(r"", CouponViewSet, basename="coupon")

urlpatterns = [
    path("validate/", CouponValidateView.as_view(), name="coupon-validate"),
] + router.urls
