# products/urls.py

"""
PRODUCTS URLS

Mounted at /api/products/:
- categories/, collections/   (registered first so they are not read as a product slug)
- ""  and  <slug>/            product list / detail
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from products.views import CategoryViewSet, CollectionViewSet, ProductViewSet

router = SimpleRouter()

router.register(r"categories", CategoryViewSet, basename="categories")
router.register(r"collections", CollectionViewSet, basename="collections")
router.register(r"", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]
