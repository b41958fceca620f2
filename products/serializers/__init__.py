# products/serializers/__init__.py

from .category import CategorySerializer, CollectionSerializer
from .product import ProductSerializer, ProductVariantSerializer

__all__ = [
    "CategorySerializer",
    "CollectionSerializer",
    "ProductSerializer",
    "ProductVariantSerializer",
]
