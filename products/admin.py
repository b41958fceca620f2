# products/admin.py
"""
CATALOG ADMIN

- Variants are edited inline on the product.
- Stock can be set here for intake/corrections; checkout and cancellation
  never go through admin (they use products.services.stock conditional updates).
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Category, Collection, Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "size", "color", "selling_price", "mrp", "stock", "position", "is_active")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "gst_rate", "is_active", "created_at")
    list_filter = ("is_active", "category")
    search_fields = ("title", "slug", "variants__sku")
    prepopulated_fields = {"slug": ("title",)}
    inlines = [ProductVariantInline]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "is_active")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Collection)
class CollectionAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "is_active")
    filter_horizontal = ("products",)
    prepopulated_fields = {"slug": ("name",)}
