"""
Tests for the Bills admin.
"""
import pytest
from django.contrib import admin
from django.test import RequestFactory

from apps.bills.admin import BillAdmin, ParticipantAdmin, ParticipantInline
from apps.bills.models import Bill, Participant

pytestmark = pytest.mark.django_db


@pytest.fixture
def request_factory():
    return RequestFactory()


def test_bill_form_excludes_total(bill, request_factory):
    form = BillAdmin(Bill, admin.site).get_form(request_factory.get('/'), bill)

    assert 'total_amount' not in form.base_fields
    assert 'merchant_name' in form.base_fields


def test_participant_form_excludes_allocation_fields(bill, request_factory):
    participant = bill.participants.get(position=1)

    form = ParticipantAdmin(Participant, admin.site).get_form(request_factory.get('/'), participant)

    for field in ('amount_to_pay', 'manually_edited', 'percentage', 'position'):
        assert field not in form.base_fields
    assert 'payment_status' in form.base_fields


def test_participants_cannot_be_added_from_admin(request_factory):
    request = request_factory.get('/')

    assert ParticipantInline(Bill, admin.site).has_add_permission(request, None) is False
    assert ParticipantAdmin(Participant, admin.site).has_add_permission(request) is False
    assert BillAdmin(Bill, admin.site).has_add_permission(request) is False
