# products/views/category.py

from rest_framework import viewsets
from rest_framework.permissions import AllowAny

from products.models import Category, Collection
from products.serializers import CategorySerializer, CollectionSerializer


class CategoryViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Public category listing (storefront navigation).
    """

    queryset = Category.objects.filter(is_active=True).order_by("name")
    serializer_class = CategorySerializer
    permission_classes = [AllowAny]
    lookup_field = "slug"
    pagination_class = None


class CollectionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Collection.objects.filter(is_active=True).order_by("name")
    serializer_class = CollectionSerializer
    permission_classes = [AllowAny]
    lookup_field = "slug"
    pagination_class = None
