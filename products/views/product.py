# products/views/product.py

"""
PRODUCT VIEWSET (STOREFRONT)

Purpose:
- Public, read-only product browsing for the storefront.
- Returns ONLY active products; variants prefetched (no N+1 on price/stock).

Filters:
- ?category=<slug>
- ?collection=<slug>
- ?q=<search>  (title / description / variant SKU)
- ?in_stock=true
"""

from django.db.models import Q
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import viewsets
from rest_framework.permissions import AllowAny

from products.models import Product
from products.serializers import ProductSerializer


class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [AllowAny]
    lookup_field = "slug"

    def get_queryset(self):
        qs = (
            Product.objects.filter(is_active=True)
            .select_related("category")
            .prefetch_related("variants")
        )

        params = self.request.query_params

        category = (params.get("category") or "").strip()
        if category:
            qs = qs.filter(category__slug=category)

        collection = (params.get("collection") or "").strip()
        if collection:
            qs = qs.filter(collections__slug=collection)

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(title__icontains=q)
                | Q(description__icontains=q)
                | Q(variants__sku__iexact=q)
            )

        if (params.get("in_stock") or "").strip().lower() in {"1", "true", "yes"}:
            qs = qs.filter(variants__is_active=True, variants__stock__gt=0)

        return qs.distinct().order_by("-created_at")

    @extend_schema(
        tags=["Catalog"],
        parameters=[
            OpenApiParameter("category", str, description="Category slug"),
            OpenApiParameter("collection", str, description="Collection slug"),
            OpenApiParameter("q", str, description="Search text"),
            OpenApiParameter("in_stock", bool, description="Only products with stock"),
        ],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)
