"""
Management command to seed a demo bill with a partly manual split.

Creates a bill split equally, sets one participant's amount by hand and
redistributes the difference, so the admin shows a realistic allocation.

Usage:
    python manage.py seed_demo_bill
    python manage.py seed_demo_bill --total 1250000 --participants 5
    python manage.py seed_demo_bill --reset  # delete earlier demo bills first
"""
from django.core.management.base import BaseCommand, CommandError

from apps.bills.models import Bill
from apps.bills.services import bill_store
from apps.bills.services.exceptions import AllocationError

DEMO_MERCHANT = 'Demo Restaurant'

DEMO_PARTICIPANTS = [
    {'name': 'Linh Nguyen', 'phone': '+84901000001'},
    {'name': 'Minh Tran', 'phone': '+84901000002'},
    {'name': 'Anh Pham', 'phone': '+84901000003'},
    {'name': 'Bao Le', 'phone': '+84901000004'},
]


class Command(BaseCommand):
    help = 'Create a demo bill with an equal split, one manual edit and a redistribution'

    def add_arguments(self, parser):
        parser.add_argument('--total', type=int, default=1000000, help='Bill total in minor units')
        parser.add_argument('--participants', type=int, default=len(DEMO_PARTICIPANTS))
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete existing demo bills before seeding',
        )

    def handle(self, *args, **options):
        if options['reset']:
            deleted, _ = Bill.objects.filter(merchant_name=DEMO_MERCHANT).delete()
            self.stdout.write(f'Deleted {deleted} demo object(s).')

        total = options['total']
        count = options['participants']

        try:
            bill = bill_store.create_bill(
                merchant_name=DEMO_MERCHANT,
                total_amount=total,
                participant_count=count,
                participants=DEMO_PARTICIPANTS[:count],
            )
            if count > 1:
                with bill_store.editing(bill.id) as edit:
                    second_share = edit.engine.shares[1].amount_to_pay
                    edit.engine.set_amount(1, min(total, second_share + second_share // 2))
                    if not edit.engine.status().is_balanced:
                        edit.engine.redistribute()
                    edit.split_method = Bill.SplitMethod.CUSTOM_AMOUNT
        except AllocationError as exc:
            raise CommandError(f'Could not seed demo bill: {exc}')

        bill.refresh_from_db()
        status = bill_store.load_engine(bill).status()
        self.stdout.write(
            self.style.SUCCESS(
                f'Created demo bill {bill.id}: {status.participant_count} participant(s), '
                f'assigned {status.total_assigned} of {status.total_amount}'
            )
        )
