# products/views/__init__.py

from .category import CategoryViewSet, CollectionViewSet
from .product import ProductViewSet

__all__ = [
    "CategoryViewSet",
    "CollectionViewSet",
    "ProductViewSet",
]
