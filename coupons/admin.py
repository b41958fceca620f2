from django.contrib import admin

from coupons.models import Coupon, Promotion


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "discount_type",
        "value",
        "used_count",
        "usage_limit",
        "valid_until",
        "is_active",
    )
    list_filter = ("discount_type", "is_active")
    search_fields = ("code",)
    readonly_fields = ("used_count", "created_at", "updated_at")


@admin.register(Promotion)
class PromotionAdmin(admin.ModelAdmin):
    list_display = ("name", "promotion_type", "discount_type", "discount_value", "start_date", "end_date", "is_active")
    list_filter = ("promotion_type", "is_active")
    search_fields = ("name", "coupon_prefix")
