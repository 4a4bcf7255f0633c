"""
Admin configuration for the Bills app.

Amounts and edit flags are read-only here; they change only through the
allocation endpoints, which validate them against the bill total. Bills and
participants are created through the API.
"""
from django.contrib import admin

from apps.bills.models import Bill, Participant

ALLOCATION_FIELDS = ['amount_to_pay', 'manually_edited', 'percentage']


class ParticipantInline(admin.TabularInline):
    model = Participant
    extra = 0
    ordering = ['position']
    readonly_fields = ['position', *ALLOCATION_FIELDS, 'paid_at']
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = [
        'merchant_name',
        'total_amount',
        'currency',
        'status',
        'split_method',
        'bill_date',
        'created_at',
    ]
    list_filter = ['status', 'split_method', 'currency', 'bill_date']
    search_fields = ['merchant_name']
    readonly_fields = ['total_amount', 'split_method', 'created_at', 'updated_at']
    inlines = [ParticipantInline]

    def has_add_permission(self, request):
        return False


@admin.register(Participant)
class ParticipantAdmin(admin.ModelAdmin):
    list_display = [
        'name',
        'bill',
        'position',
        'amount_to_pay',
        'manually_edited',
        'payment_status',
    ]
    list_filter = ['payment_status', 'manually_edited']
    search_fields = ['name', 'phone', 'email', 'bill__merchant_name']
    readonly_fields = ['bill', 'position', *ALLOCATION_FIELDS, 'paid_at', 'created_at', 'updated_at']

    def has_add_permission(self, request):
        return False
