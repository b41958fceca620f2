# products/serializers/category.py

from rest_framework import serializers

from products.models import Category, Collection


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "created_at"]
        read_only_fields = fields


class CollectionSerializer(serializers.ModelSerializer):
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Collection
        fields = ["id", "name", "slug", "description", "product_count"]
        read_only_fields = fields

    def get_product_count(self, obj) -> int:
        return obj.products.filter(is_active=True).count()
