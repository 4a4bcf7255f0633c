"""
Tests for the Bills REST API.
"""
import uuid

import pytest
from django.core.management import call_command
from rest_framework import status

from apps.bills.models import Bill, Participant

pytestmark = pytest.mark.django_db


def url(bill_id, suffix=''):
    return f'/api/v1/bills/{bill_id}/{suffix}'


def participant_amounts(response):
    return [p['amountToPay'] for p in response.json()['data']['participants']]


class TestBillEndpoints:

    def test_create_bill_splits_equally(self, api_client):
        response = api_client.post(
            '/api/v1/bills/',
            {'merchantName': 'Bun Cha', 'totalAmount': 100, 'participantCount': 3},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body['success'] is True
        assert participant_amounts(response) == [34, 33, 33]
        assert body['data']['participants'][0]['isOwner'] is True
        assert body['data']['participants'][0]['paymentStatus'] == 'paid'
        assert body['data']['allocation']['isBalanced'] is True

    def test_create_bill_requires_participants(self, api_client):
        response = api_client.post(
            '/api/v1/bills/',
            {'merchantName': 'Bun Cha', 'totalAmount': 100},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'validation_error'

    @pytest.mark.parametrize('payload', [
        {'merchantName': 'X', 'totalAmount': -1, 'participantCount': 2},
        {'merchantName': 'X', 'totalAmount': 10.5, 'participantCount': 2},
        {'merchantName': 'X', 'totalAmount': 100, 'participantCount': 0},
        {'merchantName': 'X', 'totalAmount': 100, 'participantCount': 1001},
    ])
    def test_create_bill_invalid_input(self, api_client, payload):
        response = api_client.post('/api/v1/bills/', payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert not Bill.objects.exists()

    def test_retrieve_and_list(self, api_client, bill):
        response = api_client.get(url(bill.id))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['merchantName'] == 'Pho 24'

        closed = Bill.objects.create(
            merchant_name='Old', total_amount=0, status=Bill.Status.COMPLETED,
            bill_date=bill.bill_date,
        )
        response = api_client.get('/api/v1/bills/', {'status': 'completed'})
        ids = [item['id'] for item in response.json()['data']]
        assert ids == [str(closed.id)]

    def test_unknown_bill(self, api_client):
        response = api_client.get(url(uuid.uuid4()))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['error']['code'] == 'not_found'

        response = api_client.post(url(uuid.uuid4(), 'split/equal/'))
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_status(self, api_client, bill):
        response = api_client.get(url(bill.id, 'status/'))

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data'] == {
            'totalAmount': 100,
            'participantCount': 3,
            'totalAssigned': 100,
            'remaining': 0,
            'isBalanced': True,
            'editedCount': 0,
            'uneditedCount': 3,
        }

    def test_delete(self, api_client, bill):
        response = api_client.delete(url(bill.id))

        assert response.status_code == status.HTTP_200_OK
        assert not Bill.objects.exists()
        assert not Participant.objects.exists()


class TestAllocationEndpoints:

    def test_manual_amount_then_redistribute(self, api_client, bill):
        response = api_client.put(
            url(bill.id, 'participants/0/amount/'), {'amount': 50}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert participant_amounts(response) == [50, 33, 33]
        allocation = response.json()['data']['allocation']
        assert allocation['remaining'] == -16
        assert allocation['isBalanced'] is False
        assert response.json()['data']['splitMethod'] == 'custom_amount'

        response = api_client.post(url(bill.id, 'redistribute/'))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert [p['amountToPay'] for p in data['bill']['participants']] == [50, 25, 25]
        assert [p['manuallyEdited'] for p in data['bill']['participants']] == [True, False, False]
        assert data['report']['isBalanced'] is True
        assert data['report']['adjustedCount'] == 2

    def test_negative_amount(self, api_client, bill):
        response = api_client.put(
            url(bill.id, 'participants/1/amount/'), {'amount': -1}, format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'negative'
        assert Participant.objects.get(bill=bill, position=1).amount_to_pay == 33

    def test_amount_exceeds_total(self, api_client, bill):
        response = api_client.put(
            url(bill.id, 'participants/1/amount/'), {'amount': 150}, format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'exceeds_total'

    def test_amount_for_missing_participant(self, api_client, bill):
        response = api_client.put(
            url(bill.id, 'participants/3/amount/'), {'amount': 10}, format='json',
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['error']['code'] == 'participant_not_found'

    def test_redistribute_when_balanced_is_advisory(self, api_client, bill):
        response = api_client.post(url(bill.id, 'redistribute/'))

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['advisory'] == 'already_balanced'
        assert body['data']['report'] is None
        assert [p['amountToPay'] for p in body['data']['bill']['participants']] == [34, 33, 33]

    def test_redistribute_all_manually_edited(self, api_client):
        bill = Bill.objects.create(merchant_name='Tea', total_amount=100, bill_date='2026-01-01')
        Participant.objects.create(bill=bill, name='A', position=0, amount_to_pay=10, manually_edited=True)
        Participant.objects.create(bill=bill, name='B', position=1, amount_to_pay=20, manually_edited=True)

        response = api_client.post(url(bill.id, 'redistribute/'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error']['code'] == 'all_manually_edited'
        assert sorted(bill.participants.values_list('amount_to_pay', flat=True)) == [10, 20]

    def test_redistribute_without_participants(self, api_client):
        bill = Bill.objects.create(merchant_name='Tea', total_amount=100, bill_date='2026-01-01')

        response = api_client.post(url(bill.id, 'redistribute/'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error']['code'] == 'no_participants'

    def test_equal_split_resets_edits(self, api_client, bill):
        api_client.put(url(bill.id, 'participants/2/amount/'), {'amount': 5}, format='json')

        response = api_client.post(url(bill.id, 'split/equal/'))

        assert response.status_code == status.HTTP_200_OK
        assert participant_amounts(response) == [34, 33, 33]
        assert not any(p['manuallyEdited'] for p in response.json()['data']['participants'])

    def test_percentage_split(self, api_client, bill):
        response = api_client.post(
            url(bill.id, 'split/percentage/'),
            {'percentages': ['50', '30', '20']},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert participant_amounts(response) == [50, 30, 20]
        assert data['splitMethod'] == 'percentage'
        assert [p['percentage'] for p in data['participants']] == ['50.00', '30.00', '20.00']

    def test_percentage_split_must_sum_to_100(self, api_client, bill):
        response = api_client.post(
            url(bill.id, 'split/percentage/'),
            {'percentages': ['50', '30', '10']},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'invalid_input'

    def test_add_and_remove_participants(self, api_client, bill):
        response = api_client.post(
            url(bill.id, 'participants/'), {'name': 'Dung'}, format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        names = [p['name'] for p in response.json()['data']['participants']]
        assert names == ['Owner', 'Binh', 'Chi', 'Dung']

        api_client.put(url(bill.id, 'participants/2/amount/'), {'amount': 40}, format='json')
        response = api_client.delete(url(bill.id, 'participants/1/'))

        assert response.status_code == status.HTTP_200_OK
        participants = response.json()['data']['participants']
        assert [(p['name'], p['index'], p['manuallyEdited']) for p in participants] == [
            ('Owner', 0, False),
            ('Chi', 1, True),
            ('Dung', 2, False),
        ]

    def test_remove_missing_participant(self, api_client, bill):
        response = api_client.delete(url(bill.id, 'participants/7/'))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert Participant.objects.filter(bill=bill).count() == 3

    def test_add_participant_respects_limit(self, api_client, bill, settings):
        settings.BILL_MAX_PARTICIPANTS = 3

        response = api_client.post(
            url(bill.id, 'participants/'), {'name': 'Dung'}, format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'too_many_participants'
        assert Participant.objects.filter(bill=bill).count() == 3


class TestBillUpdate:

    def test_change_total(self, api_client, bill):
        response = api_client.patch(url(bill.id), {'totalAmount': 130}, format='json')

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['totalAmount'] == 130
        assert data['allocation']['remaining'] == 30

    def test_total_below_a_share(self, api_client, bill):
        response = api_client.patch(url(bill.id), {'totalAmount': 20}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()['error']['code'] == 'exceeds_total'
        bill.refresh_from_db()
        assert bill.total_amount == 100

    def test_cannot_complete_unbalanced_bill(self, api_client, bill):
        api_client.put(url(bill.id, 'participants/0/amount/'), {'amount': 0}, format='json')

        response = api_client.patch(url(bill.id), {'status': 'completed'}, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error']['code'] == 'unbalanced'

    def test_completed_bill_is_read_only(self, api_client, bill):
        response = api_client.patch(
            url(bill.id), {'status': 'completed', 'merchantName': 'Pho 2000'}, format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['merchantName'] == 'Pho 2000'

        response = api_client.post(url(bill.id, 'split/equal/'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error']['code'] == 'bill_closed'


class TestParticipantDetails:

    def test_update_contact_details(self, api_client, bill):
        response = api_client.put(
            url(bill.id, 'participants/1/'),
            {'name': 'Binh Tran', 'phone': '+84900000001'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        participant = response.json()['data']['participants'][1]
        assert participant['name'] == 'Binh Tran'
        assert participant['phone'] == '+84900000001'
        assert participant['email'] == ''
        assert participant_amounts(response) == [34, 33, 33]

    def test_update_rejects_blank_name(self, api_client, bill):
        response = api_client.put(url(bill.id, 'participants/1/'), {'name': ''}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert Participant.objects.get(bill=bill, position=1).name == 'Binh'

    def test_update_missing_participant(self, api_client, bill):
        response = api_client.put(url(bill.id, 'participants/5/'), {'name': 'X'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['error']['code'] == 'participant_not_found'

    def test_unpaid_participants(self, api_client, bill):
        response = api_client.get(url(bill.id, 'participants/unpaid/'))

        assert response.status_code == status.HTTP_200_OK
        assert [(p['name'], p['index']) for p in response.json()['data']] == [
            ('Binh', 1),
            ('Chi', 2),
        ]

    def test_mark_as_paid(self, api_client, bill):
        response = api_client.put(url(bill.id, 'participants/2/mark-as-paid/'))

        assert response.status_code == status.HTTP_200_OK
        chi = response.json()['data']['participants'][2]
        assert chi['paymentStatus'] == 'paid'
        assert chi['paidAt'] is not None
        assert participant_amounts(response) == [34, 33, 33]

        response = api_client.get(url(bill.id, 'participants/unpaid/'))
        assert [p['name'] for p in response.json()['data']] == ['Binh']

    def test_mark_as_paid_twice_keeps_first_payment_time(self, api_client, bill):
        api_client.put(url(bill.id, 'participants/1/mark-as-paid/'))
        paid_at = Participant.objects.get(bill=bill, position=1).paid_at

        response = api_client.put(url(bill.id, 'participants/1/mark-as-paid/'))

        assert response.status_code == status.HTTP_200_OK
        assert Participant.objects.get(bill=bill, position=1).paid_at == paid_at

    def test_mark_as_paid_missing_participant(self, api_client, bill):
        response = api_client.put(url(bill.id, 'participants/3/mark-as-paid/'))

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_closed_bill_rejects_payment_recording(self, api_client, bill):
        Bill.objects.filter(pk=bill.pk).update(status=Bill.Status.CANCELLED)

        response = api_client.put(url(bill.id, 'participants/1/mark-as-paid/'))

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error']['code'] == 'bill_closed'
        assert Participant.objects.get(bill=bill, position=1).payment_status == 'pending'


class TestShareAboveTotal:
    """Rows written outside the engine, e.g. by a plain ``save()``."""

    @pytest.fixture
    def broken_bill(self, bill):
        participant = Participant.objects.get(bill=bill, position=1)
        participant.amount_to_pay = 500
        participant.save()
        return bill

    def test_reads_still_work(self, api_client, broken_bill):
        response = api_client.get(url(broken_bill.id, 'status/'))
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['totalAssigned'] == 567
        assert response.json()['data']['remaining'] == -467
        assert response.json()['data']['isBalanced'] is False

        assert api_client.get(url(broken_bill.id)).status_code == status.HTTP_200_OK
        assert api_client.get('/api/v1/bills/').status_code == status.HTTP_200_OK

    def test_equal_split_resets_the_bill(self, api_client, broken_bill):
        response = api_client.post(url(broken_bill.id, 'split/equal/'))

        assert response.status_code == status.HTTP_200_OK
        assert participant_amounts(response) == [34, 33, 33]
        assert response.json()['data']['allocation']['isBalanced'] is True


def test_seed_demo_bill_command(db, capsys):
    call_command('seed_demo_bill', '--total', '1000', '--participants', '4')

    bill = Bill.objects.get(merchant_name='Demo Restaurant')
    amounts = list(bill.participants.order_by('position').values_list('amount_to_pay', flat=True))
    assert sum(amounts) == 1000
    assert amounts[1] == 375
    assert 'Created demo bill' in capsys.readouterr().out
