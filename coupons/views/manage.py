# coupons/views/manage.py

"""
COUPON / PROMOTION ADMIN

Admin or marketing sub-admin (manage_coupons) only.
"""

import logging

from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from coupons.models import Coupon, Promotion
from coupons.serializers import (
    CouponSerializer,
    GenerateCouponsSerializer,
    GenerationResultSerializer,
    PromotionSerializer,
)
from coupons.services.promotion_service import generate_coupons
from permissions.roles import IsCouponStaff

logger = logging.getLogger(__name__)

UUID_LOOKUP = r"[0-9a-fA-F-]{36}"


@extend_schema(tags=["Coupons"])
class CouponViewSet(viewsets.ModelViewSet):
    serializer_class = CouponSerializer
    permission_classes = [IsCouponStaff]
    lookup_value_regex = UUID_LOOKUP

    def get_queryset(self):
        qs = Coupon.objects.all()

        search = (self.request.query_params.get("search") or "").strip()
        if search:
            qs = qs.filter(Q(code__icontains=search) | Q(discount_type__icontains=search))

        active = self.request.query_params.get("is_active")
        if active is not None:
            now = timezone.now()
            live = Q(is_active=True, valid_from__lte=now, valid_until__gte=now)
            qs = qs.filter(live) if active.lower() == "true" else qs.exclude(live)

        return qs

    def perform_create(self, serializer):
        coupon = serializer.save()
        logger.info("Coupon created", extra={"code": coupon.code, "by": str(self.request.user.pk)})

    def perform_destroy(self, instance):
        logger.info("Coupon deleted", extra={"code": instance.code, "by": str(self.request.user.pk)})
        instance.delete()


@extend_schema(tags=["Promotions"])
class PromotionViewSet(viewsets.ModelViewSet):
    queryset = Promotion.objects.all()
    serializer_class = PromotionSerializer
    permission_classes = [IsCouponStaff]
    lookup_value_regex = UUID_LOOKUP

    @extend_schema(request=GenerateCouponsSerializer, responses={201: GenerationResultSerializer})
    @action(detail=True, methods=["post"])
    def generate(self, request, pk=None):
        promotion = self.get_object()

        serializer = GenerateCouponsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = generate_coupons(
            promotion=promotion,
            user_ids=serializer.validated_data.get("user_ids"),
            count=serializer.validated_data.get("count"),
        )

        return Response(
            {
                "success_count": result.success_count,
                "failed_count": result.failed,
                "coupons": CouponSerializer(result.coupons, many=True).data,
            },
            status=status.HTTP_201_CREATED,
        )
