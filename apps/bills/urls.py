"""
URL configuration for the Bills app.
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.bills.views import (
    BillViewSet,
    ParticipantAmountView,
    ParticipantDetailView,
    ParticipantPaymentView,
)

app_name = 'bills'

router = DefaultRouter()
router.register(r'', BillViewSet, basename='bill')

urlpatterns = [
    # Index-based participant paths BEFORE the router's {pk} patterns
    path(
        '<uuid:bill_id>/participants/<int:index>/amount/',
        ParticipantAmountView.as_view(),
        name='participant-amount',
    ),
    path(
        '<uuid:bill_id>/participants/<int:index>/mark-as-paid/',
        ParticipantPaymentView.as_view(),
        name='participant-mark-paid',
    ),
    path(
        '<uuid:bill_id>/participants/<int:index>/',
        ParticipantDetailView.as_view(),
        name='participant-detail',
    ),
    path('', include(router.urls)),
]
