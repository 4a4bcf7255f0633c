"""
Models for the Bills app.

Amounts are stored as whole minor units of the bill currency.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone

from common.models import TimestampedModel


def default_currency():
    return settings.BILL_DEFAULT_CURRENCY


class Bill(TimestampedModel):
    """
    A bill whose total is split between its participants.
    """
    class Status(models.TextChoices):
        CREATED = 'created', 'Created'
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    class SplitMethod(models.TextChoices):
        EQUAL = 'equal', 'Equal'
        CUSTOM_AMOUNT = 'custom_amount', 'Custom Amount'
        PERCENTAGE = 'percentage', 'Percentage'

    EDITABLE_STATUSES = (Status.CREATED, Status.ACTIVE)

    merchant_name = models.CharField(max_length=255)
    total_amount = models.BigIntegerField(
        help_text='Total in minor units of the bill currency.',
    )
    currency = models.CharField(
        max_length=3,
        default=default_currency,
        help_text='ISO 4217 currency code.',
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CREATED,
        db_index=True,
    )
    split_method = models.CharField(
        max_length=20,
        choices=SplitMethod.choices,
        default=SplitMethod.EQUAL,
    )
    bill_date = models.DateField()

    class Meta:
        db_table = 'bills'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total_amount__gte=0),
                name='bill_total_amount_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.merchant_name} - {self.currency} {self.total_amount}'

    @property
    def is_editable(self):
        return self.status in self.EDITABLE_STATUSES


class Participant(TimestampedModel):
    """
    A person sharing a bill. ``position`` is the participant's index in the
    bill's split; position 0 is the bill creator.
    """
    class PaymentStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        PAID = 'paid', 'Paid'
        FAILED = 'failed', 'Failed'
        OVERDUE = 'overdue', 'Overdue'

    bill = models.ForeignKey(
        Bill,
        on_delete=models.CASCADE,
        related_name='participants',
    )
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    position = models.PositiveIntegerField()
    amount_to_pay = models.BigIntegerField(
        default=0,
        help_text='Share of the bill in minor units.',
    )
    manually_edited = models.BooleanField(
        default=False,
        help_text='Set when the amount was entered by hand.',
    )
    percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'participants'
        ordering = ['bill_id', 'position']
        indexes = [
            models.Index(fields=['bill', 'position'], name='participant_bill_position'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount_to_pay__gte=0),
                name='participant_amount_non_negative',
            ),
        ]

    def __str__(self):
        return f'{self.name} owes {self.amount_to_pay} for {self.bill}'

    @property
    def is_owner(self):
        return self.position == 0

    def mark_as_paid(self):
        self.payment_status = self.PaymentStatus.PAID
        self.paid_at = timezone.now()
        self.save(update_fields=['payment_status', 'paid_at', 'updated_at'])
