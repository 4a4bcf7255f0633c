"""
Serializers for the Bills app.
All output uses camelCase to match the mobile client.
"""
from django.conf import settings
from rest_framework import serializers

from apps.bills.models import Bill, Participant
from apps.bills.services.bill_store import create_bill, load_engine

# Largest value a BigIntegerField column can hold
MAX_AMOUNT = 2 ** 63 - 1


class ParticipantSerializer(serializers.ModelSerializer):
    billId = serializers.CharField(source='bill_id', read_only=True)
    index = serializers.IntegerField(source='position', read_only=True)
    amountToPay = serializers.IntegerField(source='amount_to_pay', read_only=True)
    manuallyEdited = serializers.BooleanField(source='manually_edited', read_only=True)
    paymentStatus = serializers.CharField(source='payment_status', read_only=True)
    paidAt = serializers.DateTimeField(source='paid_at', read_only=True)
    isOwner = serializers.BooleanField(source='is_owner', read_only=True)

    class Meta:
        model = Participant
        fields = [
            'id', 'billId', 'index', 'name', 'phone', 'email', 'amountToPay',
            'manuallyEdited', 'percentage', 'paymentStatus', 'paidAt', 'isOwner',
        ]
        read_only_fields = fields


class AllocationStatusSerializer(serializers.Serializer):
    totalAmount = serializers.IntegerField(source='total_amount')
    participantCount = serializers.IntegerField(source='participant_count')
    totalAssigned = serializers.IntegerField(source='total_assigned')
    remaining = serializers.IntegerField()
    isBalanced = serializers.BooleanField(source='is_balanced')
    editedCount = serializers.IntegerField(source='edited_count')
    uneditedCount = serializers.IntegerField(source='unedited_count')


class RedistributeReportSerializer(serializers.Serializer):
    adjustedCount = serializers.IntegerField(source='adjusted_count')
    adjustmentPerParticipant = serializers.IntegerField(source='adjustment_per_participant')
    remainderAdjustment = serializers.IntegerField(source='remainder_adjustment')
    remaining = serializers.IntegerField()
    isBalanced = serializers.BooleanField(source='is_balanced')
    clamped = serializers.ListField(child=serializers.CharField())


class BillSerializer(serializers.ModelSerializer):
    merchantName = serializers.CharField(source='merchant_name', read_only=True)
    totalAmount = serializers.IntegerField(source='total_amount', read_only=True)
    splitMethod = serializers.CharField(source='split_method', read_only=True)
    billDate = serializers.DateField(source='bill_date', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    participants = ParticipantSerializer(many=True, read_only=True)
    allocation = serializers.SerializerMethodField()

    class Meta:
        model = Bill
        fields = [
            'id', 'merchantName', 'totalAmount', 'currency', 'status',
            'splitMethod', 'billDate', 'participants', 'allocation', 'createdAt',
        ]
        read_only_fields = fields

    def get_allocation(self, obj):
        return AllocationStatusSerializer(load_engine(obj).status()).data


class ParticipantInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    email = serializers.EmailField(required=False, allow_blank=True, default='')


class BillCreateSerializer(serializers.Serializer):
    """Creates a bill and splits its total equally between the participants."""
    merchantName = serializers.CharField(max_length=255)
    totalAmount = serializers.IntegerField(min_value=0, max_value=MAX_AMOUNT)
    currency = serializers.CharField(max_length=3, required=False)
    billDate = serializers.DateField(required=False)
    participantCount = serializers.IntegerField(min_value=1, required=False)
    participants = ParticipantInputSerializer(many=True, required=False)

    def validate_currency(self, value):
        return value.upper()

    def validate(self, attrs):
        count = attrs.get('participantCount')
        people = attrs.get('participants') or []
        max_participants = settings.BILL_MAX_PARTICIPANTS

        if count is None and not people:
            raise serializers.ValidationError(
                {'participantCount': 'Provide participantCount or a participants list.'}
            )
        if count is not None and count < len(people):
            raise serializers.ValidationError(
                {'participantCount': 'Cannot be smaller than the participants list.'}
            )
        if max(count or 0, len(people)) > max_participants:
            raise serializers.ValidationError(
                {'participantCount': f'A bill can have at most {max_participants} participants.'}
            )
        return attrs

    def create(self, validated_data):
        return create_bill(
            merchant_name=validated_data['merchantName'],
            total_amount=validated_data['totalAmount'],
            participant_count=validated_data.get('participantCount'),
            participants=validated_data.get('participants'),
            currency=validated_data.get('currency'),
            bill_date=validated_data.get('billDate'),
        )


class BillUpdateSerializer(serializers.Serializer):
    merchantName = serializers.CharField(max_length=255, required=False)
    status = serializers.ChoiceField(choices=Bill.Status.choices, required=False)
    totalAmount = serializers.IntegerField(min_value=0, max_value=MAX_AMOUNT, required=False)


class SetAmountSerializer(serializers.Serializer):
    # Sign and upper bound are checked by the allocation engine
    amount = serializers.IntegerField(min_value=-MAX_AMOUNT, max_value=MAX_AMOUNT)


class PercentageSplitSerializer(serializers.Serializer):
    percentages = serializers.ListField(
        child=serializers.DecimalField(max_digits=5, decimal_places=2),
        allow_empty=False,
    )


class AddParticipantSerializer(ParticipantInputSerializer):
    amount = serializers.IntegerField(min_value=-MAX_AMOUNT, max_value=MAX_AMOUNT, default=0)


class ParticipantUpdateSerializer(serializers.Serializer):
    """Contact details only; amounts change through the allocation endpoints."""
    name = serializers.CharField(max_length=255, required=False)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
