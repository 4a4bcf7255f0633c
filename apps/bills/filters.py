"""
Filters for the Bills app.
"""
import django_filters

from apps.bills.models import Bill


class BillFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Bill.Status.choices)
    splitMethod = django_filters.ChoiceFilter(
        field_name='split_method',
        choices=Bill.SplitMethod.choices,
    )
    currency = django_filters.CharFilter(lookup_expr='iexact')

    class Meta:
        model = Bill
        fields = ['status', 'currency']
