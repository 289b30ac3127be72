"""
State transitions for payment reminders.

    active --dismiss--> dismissed (session only, back to active in a new session)
    active --acknowledge--> acknowledged (terminal, persisted)

mark_read is independent of both and never changes visibility.
"""
import logging

from django.db import transaction
from django.utils import timezone

from backend.core.utils import create_audit_log
from .exceptions import ReminderStateError
from .models import PaymentReminder
from .visibility import classify_due_date, is_acknowledged, reminder_id as get_reminder_id

logger = logging.getLogger(__name__)

STATE_ACTIVE = 'active'
STATE_DISMISSED = 'dismissed'
STATE_ACKNOWLEDGED = 'acknowledged'


def acknowledge(reminder_id, user=None, request=None, now=None):
    """
    Permanently acknowledge a reminder.

    Idempotent: acknowledging an acknowledged reminder returns it unchanged,
    keeping the original acknowledged_at. Raises PaymentReminder.DoesNotExist
    for an unknown id.
    """
    with transaction.atomic():
        reminder = PaymentReminder.objects.select_for_update().get(pk=reminder_id)
        if reminder.is_acknowledged:
            logger.debug(f"Reminder {reminder_id} already acknowledged at {reminder.acknowledged_at}")
            return reminder
        reminder.is_acknowledged = True
        reminder.acknowledged_at = now or timezone.now()
        reminder.save(update_fields=['is_acknowledged', 'acknowledged_at', 'updated_at'])

    logger.info(f"Reminder {reminder.id} acknowledged for caterer {reminder.caterer_id} ({reminder.amount})")
    create_audit_log(
        request=request,
        user=user,
        action='reminder_acknowledge',
        model_name='PaymentReminder',
        object_id=reminder.id,
        object_name=reminder.caterer.name,
        object_reference=reminder.bill_number or None,
        changes={'acknowledged_at': reminder.acknowledged_at.isoformat()},
    )
    return reminder


def dismiss(reminder_id, store):
    """Hide a reminder for the rest of the session; persisted fields are untouched"""
    reminder = PaymentReminder.objects.get(pk=reminder_id)
    store.add_dismissed(reminder.id)
    logger.info(f"Reminder {reminder.id} dismissed for this session")
    return reminder


def mark_read(reminder_id):
    reminder = PaymentReminder.objects.get(pk=reminder_id)
    if not reminder.is_read:
        reminder.is_read = True
        reminder.save(update_fields=['is_read', 'updated_at'])
        logger.debug(f"Reminder {reminder.id} marked read")
    return reminder


def set_next_reminder(reminder_id, next_reminder_date, user=None, request=None):
    """Record when staff want to be reminded again about an open payment"""
    with transaction.atomic():
        reminder = PaymentReminder.objects.select_for_update().get(pk=reminder_id)
        if reminder.is_acknowledged:
            raise ReminderStateError(f"Reminder {reminder.id} is acknowledged; no further reminders are scheduled")
        previous = reminder.next_reminder_date
        reminder.next_reminder_date = next_reminder_date
        reminder.save(update_fields=['next_reminder_date', 'updated_at'])

    logger.info(f"Next reminder for {reminder.id} set to {next_reminder_date}")
    create_audit_log(
        request=request,
        user=user,
        action='reminder_next_date',
        model_name='PaymentReminder',
        object_id=reminder.id,
        object_name=reminder.caterer.name,
        object_reference=reminder.bill_number or None,
        changes={
            'next_reminder_date': {
                'old': previous.isoformat() if previous else None,
                'new': next_reminder_date.isoformat() if next_reminder_date else None,
            }
        },
    )
    return reminder


def refresh_status(reminder, now=None):
    """Recompute the stored status label from the due date; returns True if it changed"""
    label = classify_due_date(reminder.original_due_date, now).status
    if reminder.status == label:
        return False
    reminder.status = label
    return True


def reminder_state(reminder, store):
    if is_acknowledged(reminder):
        return STATE_ACKNOWLEDGED
    if store.is_dismissed(get_reminder_id(reminder)):
        return STATE_DISMISSED
    return STATE_ACTIVE
