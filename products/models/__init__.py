"""
PATH: products/models/__init__.py

Catalog models export surface.
"""

from .category import Category
from .collection import Collection
from .product import Product
from .variant import ProductVariant

__all__ = [
    "Category",
    "Collection",
    "Product",
    "ProductVariant",
]
