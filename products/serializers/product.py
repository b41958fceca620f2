# products/serializers/product.py

"""
PRODUCT SERIALIZERS (STOREFRONT, READ-ONLY)

- Variants carry price + stock; the product exposes a price range for listing cards.
- Stock is exposed as a count plus an in-stock flag (no reservations shown).
"""

from rest_framework import serializers

from products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    is_in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "sku",
            "size",
            "color",
            "attributes",
            "selling_price",
            "mrp",
            "stock",
            "is_in_stock",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    variants = serializers.SerializerMethodField()
    min_price = serializers.SerializerMethodField()
    max_price = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "title",
            "slug",
            "description",
            "category",
            "category_name",
            "hsn_code",
            "gst_rate",
            "image_url",
            "min_price",
            "max_price",
            "variants",
            "created_at",
        ]
        read_only_fields = fields

    def _active_variants(self, obj):
        return [v for v in obj.variants.all() if v.is_active]

    def get_variants(self, obj):
        return ProductVariantSerializer(self._active_variants(obj), many=True).data

    def get_min_price(self, obj):
        prices = [v.selling_price for v in self._active_variants(obj)]
        return str(min(prices)) if prices else None

    def get_max_price(self, obj):
        prices = [v.selling_price for v in self._active_variants(obj)]
        return str(max(prices)) if prices else None
