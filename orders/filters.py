# orders/filters.py

"""
Staff order list filters (django-filter).

    ?status=SHIPPED&payment_status=PAID&payment_method=COD
    ?search=BG123456 | email | phone
    ?date_from=2026-01-01&date_to=2026-01-31   (created_at, inclusive dates)
"""

import django_filters
from django.db.models import Q

from orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Order.STATUS_CHOICES)
    payment_status = django_filters.ChoiceFilter(choices=Order.PAYMENT_STATUS_CHOICES)
    payment_method = django_filters.ChoiceFilter(choices=Order.METHOD_CHOICES)
    search = django_filters.CharFilter(method="filter_search")
    date_from = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["status", "payment_status", "payment_method"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(billing_email__icontains=value)
            | Q(billing_phone__icontains=value)
            | Q(billing_name__icontains=value)
        )
