from django.contrib import admin

from carts.models import Cart, CartItem


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ("variant_sku", "unit_price", "gst_rate", "title")


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "guest_session_id", "coupon_code", "updated_at")
    search_fields = ("guest_session_id", "user__email", "coupon_code")
    inlines = [CartItemInline]
