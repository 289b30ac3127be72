import uuid

from django.db import models
from django.utils import timezone

from backend.parties.models import Caterer
from .exceptions import ReminderStateError


def new_reminder_id():
    return str(uuid.uuid4())


class PaymentReminder(models.Model):
    """Money owed by a caterer against a bill, with the date it is due"""
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('overdue', 'Overdue'),
        ('due_today', 'Due Today'),
        ('upcoming', 'Upcoming'),
    ]

    id = models.CharField(max_length=36, primary_key=True, default=new_reminder_id, editable=False)
    caterer = models.ForeignKey(Caterer, on_delete=models.CASCADE, related_name='payment_reminders')
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    bill_number = models.CharField(max_length=100, blank=True)
    original_due_date = models.DateField()
    reminder_date = models.DateField()
    next_reminder_date = models.DateField(null=True, blank=True)
    # Display label only; visibility is always recomputed from original_due_date
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    is_read = models.BooleanField(default=False)
    is_acknowledged = models.BooleanField(default=False)
    acknowledged_at = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        label = self.bill_number or self.id[:8]
        return f"{label} - {self.amount} due {self.original_due_date}"

    def save(self, *args, **kwargs):
        if not self._state.adding and not self.is_acknowledged:
            was_acknowledged = PaymentReminder.objects.filter(pk=self.pk, is_acknowledged=True).exists()
            if was_acknowledged:
                raise ReminderStateError(f"Reminder {self.pk} is acknowledged and cannot be reopened")
        if self.is_acknowledged and self.acknowledged_at is None:
            self.acknowledged_at = timezone.now()
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'payment_reminders'
        ordering = ['reminder_date']
        indexes = [
            models.Index(fields=['status'], name='payment_rem_status_idx'),
            models.Index(fields=['reminder_date'], name='payment_rem_reminder_date_idx'),
            models.Index(fields=['original_due_date'], name='payment_rem_due_date_idx'),
        ]
