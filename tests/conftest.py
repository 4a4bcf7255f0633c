import pytest
from rest_framework.test import APIClient

from apps.bills.services import bill_store
from apps.bills.services.allocation_engine import AllocationEngine, ParticipantShare


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_engine():
    """Build an engine from ``(amount, manually_edited)`` pairs named p0, p1, ..."""
    def _make(total_amount, shares):
        return AllocationEngine(
            total_amount,
            [
                ParticipantShare(f'p{i}', amount, edited)
                for i, (amount, edited) in enumerate(shares)
            ],
        )
    return _make


@pytest.fixture
def bill(db):
    """A 100 VND bill split between three named participants: [34, 33, 33]."""
    return bill_store.create_bill(
        merchant_name='Pho 24',
        total_amount=100,
        participants=[{'name': 'Owner'}, {'name': 'Binh'}, {'name': 'Chi'}],
    )
