from django.contrib import admin

from orders.models import (
    Order,
    OrderItem,
    OrderStatusHistory,
    ReturnExchangeHistory,
    ReturnExchangeItem,
    ReturnExchangeRequest,
)


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "variant_sku",
        "title",
        "size",
        "color",
        "quantity",
        "unit_price",
        "gst_rate",
        "gst_amount",
        "line_total",
    )
    exclude = ("product", "variant")


class OrderStatusHistoryInline(admin.TabularInline):
    model = OrderStatusHistory
    extra = 0
    can_delete = False
    readonly_fields = ("status", "note", "created_by", "created_at")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Read-mostly: status changes go through the API so stock, history and
    notifications stay consistent.
    """

    list_display = (
        "order_number",
        "billing_name",
        "status",
        "payment_method",
        "payment_status",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "payment_status", "payment_method")
    search_fields = ("order_number", "billing_email", "billing_phone", "tracking_id")
    readonly_fields = (
        "order_number",
        "status",
        "payment_status",
        "subtotal_amount",
        "discount_amount",
        "total_gst_amount",
        "total_amount",
        "coupon_code",
        "created_at",
        "updated_at",
    )
    inlines = [OrderItemInline, OrderStatusHistoryInline]


class ReturnExchangeItemInline(admin.TabularInline):
    model = ReturnExchangeItem
    extra = 0


class ReturnExchangeHistoryInline(admin.TabularInline):
    model = ReturnExchangeHistory
    extra = 0
    can_delete = False
    readonly_fields = ("status", "note", "created_at")


@admin.register(ReturnExchangeRequest)
class ReturnExchangeRequestAdmin(admin.ModelAdmin):
    list_display = ("order", "request_type", "status", "refund_status", "created_at")
    list_filter = ("request_type", "status")
    readonly_fields = ("previous_status",)
    inlines = [ReturnExchangeItemInline, ReturnExchangeHistoryInline]
