# coupons/serializers.py

from datetime import timedelta
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone
from rest_framework import serializers

from coupons.models import Coupon, Promotion
from coupons.services.exceptions import DuplicateCouponError

DISCOUNT_TYPE_ALIASES = {
    "percent": Coupon.TYPE_PERCENT,
    "percentage": Coupon.TYPE_PERCENT,
    "fixed": Coupon.TYPE_FIXED,
}


def _normalize_discount_type(value: str) -> str:
    key = str(value or "").strip().lower()
    if key not in DISCOUNT_TYPE_ALIASES:
        raise serializers.ValidationError("Coupon type must be either percentage or fixed")
    return DISCOUNT_TYPE_ALIASES[key]


def _full_clean(instance):
    try:
        instance.full_clean(validate_unique=False)
    except DjangoValidationError as exc:
        raise serializers.ValidationError(getattr(exc, "message_dict", {"detail": exc.messages}))


# ---------------- COUPON ----------------
class CouponSerializer(serializers.ModelSerializer):
    """
    Admin CRUD.

    - code is uppercased; duplicates are a 409 DUPLICATE_COUPON
    - valid_until missing or already past -> one year from now
    """

    code = serializers.CharField(max_length=40)
    discount_type = serializers.CharField()
    valid_until = serializers.DateTimeField(required=False)

    class Meta:
        model = Coupon
        fields = [
            "id",
            "code",
            "description",
            "discount_type",
            "value",
            "max_discount_value",
            "min_order_value",
            "usage_limit",
            "used_count",
            "valid_from",
            "valid_until",
            "is_active",
            "promotion",
            "assigned_user",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "used_count",
            "promotion",
            "assigned_user",
            "created_at",
            "updated_at",
        ]

    def validate_code(self, value):
        code = Coupon.normalize_code(value)
        if not code:
            raise serializers.ValidationError("Coupon code is required")

        qs = Coupon.objects.filter(code=code)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise DuplicateCouponError()
        return code

    def validate_discount_type(self, value):
        return _normalize_discount_type(value)

    def validate(self, attrs):
        discount_type = attrs.get("discount_type", getattr(self.instance, "discount_type", None))
        value = attrs.get("value", getattr(self.instance, "value", None))

        if value is not None:
            value = Decimal(value)
            if discount_type == Coupon.TYPE_PERCENT and (value <= 0 or value > 100):
                raise serializers.ValidationError({"value": "Percentage value must be between 1 and 100"})
            if discount_type == Coupon.TYPE_FIXED and value <= 0:
                raise serializers.ValidationError({"value": "Fixed value must be greater than 0"})

        now = timezone.now()
        if self.instance is None or "valid_until" in attrs:
            valid_until = attrs.get("valid_until")
            if valid_until is None or valid_until <= now:
                attrs["valid_until"] = now + timedelta(days=365)

        return attrs

    def create(self, validated_data):
        coupon = Coupon(**validated_data)
        _full_clean(coupon)
        coupon.save()
        return coupon

    def update(self, instance, validated_data):
        for key, value in validated_data.items():
            setattr(instance, key, value)
        _full_clean(instance)
        instance.save()
        return instance


class CouponValidateSerializer(serializers.Serializer):
    code = serializers.CharField(max_length=40)
    order_value = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )


# ---------------- PROMOTION ----------------
class PromotionSerializer(serializers.ModelSerializer):
    discount_type = serializers.CharField()
    coupon_count = serializers.SerializerMethodField()

    class Meta:
        model = Promotion
        fields = [
            "id",
            "name",
            "description",
            "promotion_type",
            "discount_type",
            "discount_value",
            "start_date",
            "end_date",
            "is_active",
            "coupon_prefix",
            "coupon_length",
            "coupon_expire_days",
            "min_order_amount",
            "max_usage_count",
            "image_url",
            "coupon_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "coupon_count", "created_at", "updated_at"]

    def get_coupon_count(self, obj) -> int:
        return obj.coupons.count()

    def validate_discount_type(self, value):
        return _normalize_discount_type(value)

    def create(self, validated_data):
        promotion = Promotion(**validated_data)
        _full_clean(promotion)
        promotion.save()
        return promotion

    def update(self, instance, validated_data):
        for key, value in validated_data.items():
            setattr(instance, key, value)
        _full_clean(instance)
        instance.save()
        return instance


class GenerateCouponsSerializer(serializers.Serializer):
    user_ids = serializers.ListField(
        child=serializers.UUIDField(),
        required=False,
        allow_empty=False,
    )
    count = serializers.IntegerField(required=False, min_value=1, max_value=500)

    def validate(self, attrs):
        if bool(attrs.get("user_ids")) == bool(attrs.get("count")):
            raise serializers.ValidationError("Provide exactly one of user_ids or count")
        return attrs


class GenerationResultSerializer(serializers.Serializer):
    success_count = serializers.IntegerField()
    failed_count = serializers.IntegerField()
    coupons = CouponSerializer(many=True)
