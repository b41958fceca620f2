# coupons/views/validate.py

"""
PUBLIC COUPON PREVIEW

POST /api/coupons/validate/   {code, order_value}

- AllowAny + public_write throttle (code-guessing target)
- Never mutates used_count; redemption happens at order creation only
- Failures keep the storefront envelope (success/message/error)
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle
from rest_framework.views import APIView

from coupons.serializers import CouponValidateSerializer
from coupons.services.coupon_engine import validate_coupon


class PublicWriteThrottle(AnonRateThrottle):
    scope = "public_write"


class CouponValidateView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [PublicWriteThrottle]

    @extend_schema(
        tags=["Coupons"],
        request=CouponValidateSerializer,
        responses={
            200: OpenApiResponse(description="Coupon applies; discount and discounted total returned"),
            400: OpenApiResponse(description="INACTIVE_COUPON / COUPON_USAGE_EXCEEDED / ORDER_VALUE_TOO_LOW"),
            404: OpenApiResponse(description="INVALID_COUPON"),
        },
    )
    def post(self, request):
        serializer = CouponValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        quote = validate_coupon(
            serializer.validated_data["code"],
            serializer.validated_data["order_value"],
        )

        return Response(
            {
                "success": True,
                "message": "Coupon applied successfully",
                "data": {"coupon": quote.as_dict()},
            }
        )
