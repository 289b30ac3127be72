from rest_framework import serializers
from django.utils import timezone

from backend.parties.models import Caterer
from .exceptions import InvalidReminder
from .models import PaymentReminder
from .visibility import classify_due_date, days_until_due, to_calendar_date


class CalendarDateField(serializers.DateField):
    """Date field that also accepts full ISO timestamps, keeping only the local day"""

    def to_internal_value(self, value):
        if isinstance(value, str) and ('T' in value or ' ' in value):
            try:
                return to_calendar_date(value, self.field_name)
            except InvalidReminder as exc:
                raise serializers.ValidationError(str(exc))
        return super().to_internal_value(value)


class PaymentReminderSerializer(serializers.ModelSerializer):
    catererId = serializers.PrimaryKeyRelatedField(source='caterer', queryset=Caterer.objects.all())
    catererName = serializers.CharField(source='caterer.name', read_only=True)
    billNumber = serializers.CharField(source='bill_number', required=False, allow_blank=True, max_length=100)
    originalDueDate = CalendarDateField(source='original_due_date')
    reminderDate = CalendarDateField(source='reminder_date', required=False)
    nextReminderDate = CalendarDateField(source='next_reminder_date', required=False, allow_null=True)
    status = serializers.ChoiceField(choices=PaymentReminder.STATUS_CHOICES, required=False)
    isRead = serializers.BooleanField(source='is_read', required=False)
    isAcknowledged = serializers.BooleanField(source='is_acknowledged', read_only=True)
    acknowledgedAt = serializers.DateTimeField(source='acknowledged_at', read_only=True)
    daysUntilDue = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = PaymentReminder
        fields = [
            'id', 'catererId', 'catererName', 'amount', 'billNumber',
            'originalDueDate', 'reminderDate', 'nextReminderDate', 'status',
            'isRead', 'isAcknowledged', 'acknowledgedAt', 'notes',
            'daysUntilDue', 'createdAt', 'updatedAt'
        ]
        read_only_fields = ['id']
        extra_kwargs = {'notes': {'required': False, 'allow_blank': True}}

    def get_daysUntilDue(self, obj):
        return days_until_due(obj.original_due_date, self.context.get('now'))

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount must be greater than zero.")
        return value

    def create(self, validated_data):
        now = self.context.get('now')
        validated_data.setdefault('reminder_date', timezone.localdate() if now is None else to_calendar_date(now, 'now'))
        if 'status' not in validated_data:
            validated_data['status'] = classify_due_date(validated_data['original_due_date'], now).status
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if 'original_due_date' in validated_data and 'status' not in validated_data:
            validated_data['status'] = classify_due_date(validated_data['original_due_date'], self.context.get('now')).status
        return super().update(instance, validated_data)


class NextReminderSerializer(serializers.Serializer):
    nextReminderDate = CalendarDateField(allow_null=True)


class NotificationSerializer(serializers.Serializer):
    """Active reminder shaped as a notification card for the header bell"""
    id = serializers.SerializerMethodField()
    type = serializers.SerializerMethodField()
    title = serializers.SerializerMethodField()
    message = serializers.SerializerMethodField()
    priority = serializers.SerializerMethodField()
    isRead = serializers.BooleanField(source='is_read', read_only=True)
    data = serializers.SerializerMethodField()
    createdAt = serializers.DateField(source='reminder_date', read_only=True)

    def get_id(self, obj):
        return f"payment-{obj.id}"

    def get_type(self, obj):
        return 'payment_reminder'

    def get_title(self, obj):
        return f"Payment Due: {obj.caterer.name}"

    def get_message(self, obj):
        return f"₹{obj.amount:,} due on {obj.original_due_date.strftime('%d %b %Y')}"

    def get_priority(self, obj):
        # Every active notice is two days out; unread ones are flagged higher
        return 'medium' if obj.is_read else 'high'

    def get_data(self, obj):
        return {
            'reminderId': obj.id,
            'catererId': obj.caterer_id,
            'catererName': obj.caterer.name,
            'billNumber': obj.bill_number,
            'amount': str(obj.amount),
            'originalDueDate': obj.original_due_date.isoformat(),
            'nextReminderDate': obj.next_reminder_date.isoformat() if obj.next_reminder_date else None,
        }
