"""
Views for the Bills app.
"""
import logging
import uuid
from contextlib import contextmanager

from django.conf import settings
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.bills.exceptions import AllocationConflict, AllocationInputError, to_api_exception
from apps.bills.filters import BillFilter
from apps.bills.models import Bill, Participant
from apps.bills.serializers import (
    AddParticipantSerializer,
    AllocationStatusSerializer,
    BillCreateSerializer,
    BillSerializer,
    BillUpdateSerializer,
    ParticipantSerializer,
    ParticipantUpdateSerializer,
    PercentageSplitSerializer,
    RedistributeReportSerializer,
    SetAmountSerializer,
)
from apps.bills.services import bill_store
from apps.bills.services.exceptions import AllocationError, AlreadyBalancedError

logger = logging.getLogger(__name__)


@contextmanager
def allocation_edit(bill_id):
    """
    Lock *bill_id* for an allocation change and yield a ``BillEdit``.

    Engine errors are re-raised as API exceptions once the transaction has
    been rolled back.
    """
    try:
        with bill_store.editing(bill_id) as edit:
            if not edit.bill.is_editable:
                raise AllocationConflict(
                    detail=f'A {edit.bill.status} bill can no longer be edited.',
                    code='bill_closed',
                )
            yield edit
    except Bill.DoesNotExist:
        raise NotFound('Bill not found.')
    except (AllocationError, IndexError) as exc:
        raise to_api_exception(exc) from exc


def get_bill(bill_id):
    try:
        return Bill.objects.prefetch_related('participants').get(pk=bill_id)
    except Bill.DoesNotExist:
        raise NotFound('Bill not found.')


class BillViewSet(viewsets.ModelViewSet):
    """
    ViewSet for bills and their allocation.

    list:        GET    /api/v1/bills/?status=<status>&splitMethod=<method>
    create:      POST   /api/v1/bills/
    read:        GET    /api/v1/bills/{id}/
    update:      PATCH  /api/v1/bills/{id}/
    delete:      DELETE /api/v1/bills/{id}/
    status:      GET    /api/v1/bills/{id}/status/
    equal split: POST   /api/v1/bills/{id}/split/equal/
    percentage:  POST   /api/v1/bills/{id}/split/percentage/
    redistribute POST   /api/v1/bills/{id}/redistribute/
    add person:  POST   /api/v1/bills/{id}/participants/
    unpaid:      GET    /api/v1/bills/{id}/participants/unpaid/
    """
    queryset = Bill.objects.prefetch_related('participants')
    filter_backends = [DjangoFilterBackend]
    filterset_class = BillFilter
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'create':
            return BillCreateSerializer
        if self.action == 'partial_update':
            return BillUpdateSerializer
        return BillSerializer

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        serializer = BillSerializer(queryset, many=True)
        return Response({'success': True, 'data': serializer.data})

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            bill = serializer.save()
        except AllocationError as exc:
            raise to_api_exception(exc) from exc
        return Response(
            {
                'success': True,
                'data': BillSerializer(get_bill(bill.id)).data,
            },
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        instance = self.get_object()
        return Response({'success': True, 'data': BillSerializer(instance).data})

    def partial_update(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with allocation_edit(kwargs['pk']) as edit:
            if 'totalAmount' in data:
                edit.engine.set_total_amount(data['totalAmount'])
            if data.get('status') == Bill.Status.COMPLETED and not edit.engine.status().is_balanced:
                raise AllocationConflict(
                    detail='An unbalanced bill cannot be completed.',
                    code='unbalanced',
                )
            update_fields = []
            if 'merchantName' in data:
                edit.bill.merchant_name = data['merchantName']
                update_fields.append('merchant_name')
            if 'status' in data:
                edit.bill.status = data['status']
                update_fields.append('status')
            if update_fields:
                edit.bill.save(update_fields=update_fields + ['updated_at'])

        return Response({'success': True, 'data': BillSerializer(get_bill(kwargs['pk'])).data})

    def destroy(self, request, *args, **kwargs):
        instance = self.get_object()
        instance.delete()
        logger.info('Deleted bill %s', kwargs['pk'])
        return Response(
            {'success': True, 'message': 'Bill deleted.'},
            status=status.HTTP_200_OK,
        )

    @action(detail=True, methods=['get'], url_path='status')
    def allocation_status(self, request, pk=None):
        """Balance status of the current allocation."""
        bill = self.get_object()
        engine = bill_store.load_engine(bill)
        return Response(
            {'success': True, 'data': AllocationStatusSerializer(engine.status()).data}
        )

    @action(detail=True, methods=['post'], url_path='split/equal')
    def equal_split(self, request, pk=None):
        """Reset every share to an equal split of the total."""
        with allocation_edit(pk) as edit:
            edit.engine.equal_split()
            edit.split_method = Bill.SplitMethod.EQUAL

        return Response(
            {
                'success': True,
                'data': BillSerializer(get_bill(pk)).data,
                'message': 'Bill split equally.',
            }
        )

    @action(detail=True, methods=['post'], url_path='split/percentage')
    def percentage_split(self, request, pk=None):
        """Reset every share to a percentage of the total, in index order."""
        serializer = PercentageSplitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        percentages = serializer.validated_data['percentages']

        with allocation_edit(pk) as edit:
            edit.engine.percentage_split(percentages)
            edit.split_method = Bill.SplitMethod.PERCENTAGE
            edit.percentages = percentages

        return Response(
            {
                'success': True,
                'data': BillSerializer(get_bill(pk)).data,
                'message': 'Bill split by percentage.',
            }
        )

    @action(detail=True, methods=['post'])
    def redistribute(self, request, pk=None):
        """
        Spread the outstanding imbalance over participants not edited by hand.

        An already balanced bill is reported as an advisory, not an error.
        """
        report = None
        with allocation_edit(pk) as edit:
            try:
                report = edit.engine.redistribute()
            except AlreadyBalancedError as exc:
                advisory = exc

        if report is None:
            return Response(
                {
                    'success': True,
                    'advisory': advisory.code,
                    'message': advisory.message,
                    'data': {'bill': BillSerializer(get_bill(pk)).data, 'report': None},
                }
            )

        return Response(
            {
                'success': True,
                'data': {
                    'bill': BillSerializer(get_bill(pk)).data,
                    'report': RedistributeReportSerializer(report).data,
                },
                'message': (
                    'Imbalance redistributed.' if report.is_balanced
                    else 'Some shares could not go below zero; the bill is still unbalanced.'
                ),
            }
        )

    @action(detail=True, methods=['post'], url_path='participants')
    def add_participant(self, request, pk=None):
        """Append a participant; the split is not changed."""
        serializer = AddParticipantSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        with allocation_edit(pk) as edit:
            max_participants = settings.BILL_MAX_PARTICIPANTS
            if edit.engine.participant_count >= max_participants:
                raise AllocationInputError(
                    detail=f'A bill can have at most {max_participants} participants.',
                    code='too_many_participants',
                )
            participant_id = str(uuid.uuid4())
            edit.engine.add_participant(participant_id, amount=data['amount'])
            edit.new_participants[participant_id] = data

        return Response(
            {'success': True, 'data': BillSerializer(get_bill(pk)).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=True, methods=['get'], url_path='participants/unpaid')
    def unpaid_participants(self, request, pk=None):
        """Participants who have not paid their share yet."""
        bill = self.get_object()
        participants = bill.participants.exclude(
            payment_status=Participant.PaymentStatus.PAID,
        ).order_by('position')
        return Response(
            {
                'success': True,
                'data': ParticipantSerializer(participants, many=True).data,
            }
        )


class ParticipantAmountView(APIView):
    """
    Set one participant's amount by hand.

    PUT /api/v1/bills/{bill_id}/participants/{index}/amount/
    Body: {"amount": 50000}
    """

    def put(self, request, bill_id, index):
        serializer = SetAmountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with allocation_edit(bill_id) as edit:
            edit.engine.set_amount(index, serializer.validated_data['amount'])
            edit.split_method = Bill.SplitMethod.CUSTOM_AMOUNT

        return Response({'success': True, 'data': BillSerializer(get_bill(bill_id)).data})


class ParticipantDetailView(APIView):
    """
    Update or remove one participant.

    PUT    /api/v1/bills/{bill_id}/participants/{index}/
    Body: {"name": "...", "phone": "...", "email": "..."} (all optional)
    DELETE /api/v1/bills/{bill_id}/participants/{index}/
           Later participants move down one index.
    """

    def put(self, request, bill_id, index):
        serializer = ParticipantUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with allocation_edit(bill_id) as edit:
            participant = edit.participant(index)
            for field, value in serializer.validated_data.items():
                setattr(participant, field, value)
            participant.save(update_fields=list(serializer.validated_data) + ['updated_at'])

        return Response({'success': True, 'data': BillSerializer(get_bill(bill_id)).data})

    def delete(self, request, bill_id, index):
        with allocation_edit(bill_id) as edit:
            removed = edit.engine.remove_participant(index)

        logger.info('Removed participant %s from bill %s', removed.participant_id, bill_id)
        return Response(
            {
                'success': True,
                'data': BillSerializer(get_bill(bill_id)).data,
                'message': 'Participant removed.',
            }
        )


class ParticipantPaymentView(APIView):
    """
    Record that a participant has paid their share.

    PUT /api/v1/bills/{bill_id}/participants/{index}/mark-as-paid/
    """

    def put(self, request, bill_id, index):
        with allocation_edit(bill_id) as edit:
            participant = edit.participant(index)
            if participant.payment_status != Participant.PaymentStatus.PAID:
                participant.mark_as_paid()
                logger.info('Participant %s of bill %s marked as paid', participant.id, bill_id)

        return Response({'success': True, 'data': BillSerializer(get_bill(bill_id)).data})
