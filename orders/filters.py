"""FilterSets for admin order listings."""

from django_filters import rest_framework as filters

from .models import Order


class OrderFilterSet(filters.FilterSet):
    number = filters.CharFilter(field_name="number")
    user = filters.NumberFilter(field_name="user_id")
    start = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    end = filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lte")

    class Meta:
        model = Order
        fields = ["number", "user", "start", "end"]
