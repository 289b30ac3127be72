from django.contrib import admin
from .models import PaymentReminder


@admin.register(PaymentReminder)
class PaymentReminderAdmin(admin.ModelAdmin):
    list_display = ['id', 'caterer', 'bill_number', 'amount', 'original_due_date', 'status', 'is_read', 'is_acknowledged', 'acknowledged_at']
    list_filter = ['status', 'is_read', 'is_acknowledged', 'original_due_date']
    search_fields = ['id', 'bill_number', 'caterer__name', 'notes']
    readonly_fields = ['id', 'is_acknowledged', 'acknowledged_at', 'created_at', 'updated_at']
    ordering = ['original_due_date']
    date_hierarchy = 'original_due_date'
