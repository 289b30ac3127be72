"""
Visibility rules for caterer payment reminders.

A reminder is surfaced as an active notice only on the day that is exactly
ACTIVE_NOTICE_DAYS calendar days before its original due date, and only while
it is neither acknowledged nor dismissed in the current session. One day
before, on the due date, or after it, the reminder is not active even though
the payment may still be open; the management list shows those.

Everything here is pure: pass "now" explicitly to get repeatable answers.
Records can be PaymentReminder instances or plain mappings using either the
API's camelCase keys or the model's snake_case names.
"""
from dataclasses import dataclass
from datetime import date, datetime

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .exceptions import InvalidReminder

ACTIVE_NOTICE_DAYS = 2

STATUS_PRIORITY = {
    'overdue': 0,
    'due_today': 1,
    'upcoming': 2,
    'pending': 3,
}

_MISSING = object()


@dataclass(frozen=True)
class DueDateClassification:
    days_until_due: int
    is_exactly_two_days_before: bool
    status: str


def _field(record, name, camel_name=None):
    if isinstance(record, dict):
        if name in record:
            return record[name]
        if camel_name and camel_name in record:
            return record[camel_name]
        return _MISSING
    return getattr(record, name, _MISSING)


def to_calendar_date(value, field_name):
    """Truncate a date, datetime or ISO string to a local calendar day"""
    if value is _MISSING or value is None or value == '':
        raise InvalidReminder(f"Reminder is missing {field_name}")
    if isinstance(value, str):
        try:
            parsed = parse_datetime(value) if 'T' in value or ' ' in value else None
            if parsed is None:
                parsed = parse_date(value[:10])
        except ValueError:
            parsed = None
        if parsed is None:
            raise InvalidReminder(f"Unreadable {field_name}: {value!r}")
        value = parsed
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localdate(value)
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidReminder(f"Unsupported {field_name} type: {type(value).__name__}")


def _today(now=None):
    if now is None:
        return timezone.localdate()
    return to_calendar_date(now, 'now')


def status_label(days):
    """Cosmetic status for the management view"""
    if days < 0:
        return 'overdue'
    if days == 0:
        return 'due_today'
    if days < ACTIVE_NOTICE_DAYS:
        return 'upcoming'
    return 'pending'


def days_until_due(original_due_date, now=None):
    """Whole calendar days from today until the due date (negative when overdue)"""
    due = to_calendar_date(original_due_date, 'original_due_date')
    return (due - _today(now)).days


def classify_due_date(original_due_date, now=None):
    days = days_until_due(original_due_date, now)
    return DueDateClassification(
        days_until_due=days,
        is_exactly_two_days_before=days == ACTIVE_NOTICE_DAYS,
        status=status_label(days),
    )


def reminder_id(reminder):
    value = _field(reminder, 'id')
    if value is _MISSING or value is None or value == '':
        raise InvalidReminder("Reminder is missing id")
    return str(value)


def reminder_due_date(reminder):
    return _field(reminder, 'original_due_date', 'originalDueDate')


def is_acknowledged(reminder):
    value = _field(reminder, 'is_acknowledged', 'isAcknowledged')
    return value is not _MISSING and bool(value)


def classify_reminder(reminder, now=None):
    return classify_due_date(reminder_due_date(reminder), now)


def visible_reminders(reminders, dismissed_ids=(), now=None):
    """
    Reminders to surface as active notices right now, in input order.

    Acknowledged reminders and ids in dismissed_ids are always excluded; of
    the rest only those due exactly ACTIVE_NOTICE_DAYS days from today pass.
    Raises InvalidReminder for a record without an id or a due date.
    """
    today = _today(now)
    dismissed = {str(d) for d in dismissed_ids}
    visible = []
    for reminder in reminders:
        rid = reminder_id(reminder)
        classification = classify_reminder(reminder, today)
        if is_acknowledged(reminder):
            continue
        if rid in dismissed:
            continue
        if not classification.is_exactly_two_days_before:
            continue
        visible.append(reminder)
    return visible


def management_order(reminders, now=None):
    """Sort for the "manage all" list: most urgent first, then newest reminder date"""
    today = _today(now)

    def recency(reminder):
        value = _field(reminder, 'reminder_date', 'reminderDate')
        if value is _MISSING or value is None:
            return date.min
        return to_calendar_date(value, 'reminder_date')

    def priority(reminder):
        return STATUS_PRIORITY[classify_reminder(reminder, today).status]

    by_recency = sorted(reminders, key=recency, reverse=True)
    return sorted(by_recency, key=priority)
