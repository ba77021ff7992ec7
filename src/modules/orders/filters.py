import django_filters

from modules.orders.constants import OrderType, PaymentMethod, Stage
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(
        field_name="current_status", choices=Stage.choices
    )
    order_type = django_filters.ChoiceFilter(choices=OrderType.choices)
    payment_method = django_filters.ChoiceFilter(choices=PaymentMethod.choices)
    tracking_code = django_filters.CharFilter(lookup_expr="iexact")
    client = django_filters.CharFilter(
        field_name="client_name", lookup_expr="icontains"
    )
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    scheduled_date = django_filters.DateFilter(field_name="scheduled_date")

    class Meta:
        model = Order
        fields = [
            "status",
            "order_type",
            "payment_method",
            "tracking_code",
            "client",
            "start_date",
            "end_date",
            "scheduled_date",
        ]
