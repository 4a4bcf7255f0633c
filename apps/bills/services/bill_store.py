"""
Loads allocation engines from the database and writes them back.

Participants are identified inside the engine by their UUID (as a string),
so edit flags follow a participant when others are removed. Only this module
translates between ``Participant`` rows and ``ParticipantShare`` values.
"""
import logging
from contextlib import contextmanager

from django.db import transaction
from django.utils import timezone

from apps.bills.models import Bill, Participant
from apps.bills.services.allocation_engine import AllocationEngine, ParticipantShare

logger = logging.getLogger(__name__)


def load_engine(bill):
    """
    Build an ``AllocationEngine`` from *bill* and its participants.

    Rows are loaded as stored, even when a share exceeds the bill total, so
    such a bill can still be read and reset with a new split.
    """
    shares = [
        ParticipantShare(
            participant_id=str(p.id),
            amount_to_pay=p.amount_to_pay,
            manually_edited=p.manually_edited,
        )
        for p in sorted(bill.participants.all(), key=lambda p: p.position)
    ]
    if any(share.amount_to_pay > bill.total_amount for share in shares):
        logger.warning('Bill %s has a share above its total of %s', bill.id, bill.total_amount)
    return AllocationEngine(bill.total_amount, shares, strict=False)


def save_engine(bill, engine, split_method=None, percentages=None, new_participants=None):
    """
    Persist the state of *engine* for *bill*.

    Parameters
    ----------
    bill : Bill
    engine : AllocationEngine
    split_method : str, optional
        Stored on the bill when given.
    percentages : list, optional
        One percentage per share (index order) for percentage splits. When
        omitted, stored percentages are cleared for any non-percentage split.
    new_participants : dict, optional
        ``{participant_id: {"name": ..., "phone": ..., "email": ...}}`` for
        shares added to the engine since it was loaded.
    """
    new_participants = new_participants or {}
    shares = engine.shares
    keep_ids = [share.participant_id for share in shares]

    with transaction.atomic():
        removed, _ = bill.participants.exclude(id__in=keep_ids).delete()
        if removed:
            logger.info('Removed %d participant(s) from bill %s', removed, bill.id)

        existing = {str(p.id): p for p in bill.participants.all()}
        to_update = []
        for position, share in enumerate(shares):
            participant = existing.get(share.participant_id)
            if participant is None:
                details = new_participants.get(share.participant_id, {})
                participant = Participant(
                    id=share.participant_id,
                    bill=bill,
                    name=details.get('name') or f'Participant {position + 1}',
                    phone=details.get('phone', ''),
                    email=details.get('email', ''),
                )
            participant.position = position
            participant.amount_to_pay = share.amount_to_pay
            participant.manually_edited = share.manually_edited
            if percentages is not None:
                participant.percentage = percentages[position]
            elif split_method and split_method != Bill.SplitMethod.PERCENTAGE:
                participant.percentage = None

            if participant._state.adding:
                participant.save()
            else:
                to_update.append(participant)

        if to_update:
            for participant in to_update:
                participant.updated_at = timezone.now()
            Participant.objects.bulk_update(
                to_update,
                ['position', 'amount_to_pay', 'manually_edited', 'percentage', 'updated_at'],
            )

        bill.total_amount = engine.total_amount
        update_fields = ['total_amount', 'updated_at']
        if split_method:
            bill.split_method = split_method
            update_fields.append('split_method')
        bill.save(update_fields=update_fields)


class BillEdit:
    """
    A locked bill and its engine, yielded by ``editing``.

    ``split_method``, ``percentages`` and ``new_participants`` are passed on
    to ``save_engine`` when the edit is committed.
    """

    def __init__(self, bill, engine):
        self.bill = bill
        self.engine = engine
        self.split_method = None
        self.percentages = None
        self.new_participants = {}

    def participant(self, index):
        """The ``Participant`` row at *index*; raises ``IndexError`` when out of range."""
        share = self.engine.share_at(index)
        return self.bill.participants.get(pk=share.participant_id)

    def commit(self):
        save_engine(
            self.bill,
            self.engine,
            split_method=self.split_method,
            percentages=self.percentages,
            new_participants=self.new_participants,
        )


@contextmanager
def editing(bill_id):
    """
    Lock a bill for editing and yield a ``BillEdit``.

    The bill row stays locked for the duration of the block, so concurrent
    editors of the same bill are serialised. The engine is saved when the
    block exits normally; an exception rolls everything back.
    """
    with transaction.atomic():
        bill = Bill.objects.select_for_update().get(pk=bill_id)
        edit = BillEdit(bill, load_engine(bill))
        yield edit
        edit.commit()


def create_bill(merchant_name, total_amount, participant_count=None, participants=None,
                currency=None, bill_date=None):
    """
    Create a bill with its participants and split the total equally.

    Either *participant_count* or *participants* (a list of dicts with
    ``name``/``phone``/``email``) must be given. Unnamed participants are
    called "Participant N". The first participant is the bill creator and is
    marked as paid.
    """
    participants = list(participants or [])
    if participant_count is None:
        participant_count = len(participants)
    participants += [{} for _ in range(participant_count - len(participants))]

    with transaction.atomic():
        bill = Bill(
            merchant_name=merchant_name,
            total_amount=total_amount,
            bill_date=bill_date or timezone.now().date(),
        )
        if currency:
            bill.currency = currency
        rows = [
            Participant(
                bill=bill,
                name=details.get('name') or f'Participant {position + 1}',
                phone=details.get('phone', ''),
                email=details.get('email', ''),
                position=position,
            )
            for position, details in enumerate(participants)
        ]
        engine = AllocationEngine.with_equal_split(
            total_amount, [str(row.id) for row in rows],
        )
        bill.save()

        for row, share in zip(rows, engine.shares):
            row.amount_to_pay = share.amount_to_pay
        if rows:
            rows[0].payment_status = Participant.PaymentStatus.PAID
            rows[0].paid_at = timezone.now()
        Participant.objects.bulk_create(rows)

    logger.info(
        'Created bill %s for %s split between %d participant(s)',
        bill.id, total_amount, len(rows),
    )
    return bill
