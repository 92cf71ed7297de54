import django_filters

from wallet.models import Transaction


class TransactionFilter(django_filters.FilterSet):
    token = django_filters.CharFilter(field_name='token', lookup_expr='iexact')
    created_after = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.IsoDateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Transaction
        fields = ['token', 'transaction_type', 'status']
