import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    store = django_filters.UUIDFilter(field_name="store_id")
    status = django_filters.CharFilter(field_name="status", lookup_expr="exact")
    delivery_type = django_filters.CharFilter(field_name="delivery_type")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["store", "status", "delivery_type", "start_date", "end_date"]
