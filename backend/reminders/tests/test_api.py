"""
Test suite for the payment reminder API
Tests: management list, active notices, acknowledge, dismiss, read, next reminder, notifications
"""
from datetime import date
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.reminders import lifecycle
from backend.reminders.models import PaymentReminder

TODAY = '2024-01-10'


class ReminderAPITestCase(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.caterer = TestDataFactory.create_caterer(name='Annapurna Caterers')

    def make(self, due, **kwargs):
        return TestDataFactory.create_reminder(caterer=self.caterer, original_due_date=due, **kwargs)

    def active_ids(self, client=None):
        response = (client or self.client).get(f'/api/v1/payment-reminders/active/?date={TODAY}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [r['id'] for r in response.data]


class ActiveRemindersAPITests(ReminderAPITestCase):
    """Test GET /payment-reminders/active/"""

    def test_due_in_two_days_is_active(self):
        reminder = self.make(date(2024, 1, 12))
        self.assertEqual(self.active_ids(), [reminder.id])

    def test_due_in_one_or_three_days_is_not_active(self):
        self.make(date(2024, 1, 11))
        self.make(date(2024, 1, 13))
        self.assertEqual(self.active_ids(), [])

    def test_acknowledged_is_not_active(self):
        self.make(date(2024, 1, 12), is_acknowledged=True)
        self.assertEqual(self.active_ids(), [])

    def test_overdue_is_not_active(self):
        self.make(date(2024, 1, 9))
        self.assertEqual(self.active_ids(), [])

    def test_active_payload(self):
        self.make(date(2024, 1, 12), bill_number='B001', amount=Decimal('2500.00'))
        response = self.client.get(f'/api/v1/payment-reminders/active/?date={TODAY}')
        item = response.data[0]
        self.assertEqual(item['billNumber'], 'B001')
        self.assertEqual(item['amount'], '2500.00')
        self.assertEqual(item['catererId'], self.caterer.id)
        self.assertEqual(item['catererName'], 'Annapurna Caterers')
        self.assertEqual(item['originalDueDate'], '2024-01-12')
        self.assertEqual(item['daysUntilDue'], 2)
        self.assertFalse(item['isAcknowledged'])

    def test_defaults_to_today(self):
        reminder = TestDataFactory.create_reminder(caterer=self.caterer, days_until_due=2)
        response = self.client.get('/api/v1/payment-reminders/active/')
        self.assertEqual([r['id'] for r in response.data], [reminder.id])

    def test_invalid_date_parameter(self):
        response = self.client.get('/api/v1/payment-reminders/active/?date=10-01-2024')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)


class DismissAPITests(ReminderAPITestCase):
    """Test POST /payment-reminders/<id>/dismiss/"""

    def test_dismiss_hides_for_this_session_only(self):
        reminder = self.make(date(2024, 1, 12))
        response = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/dismiss/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'id': reminder.id, 'dismissed': True})
        self.assertEqual(self.active_ids(), [])

        # New session: the reminder is back
        restarted = AuthenticatedAPIClient()
        restarted.authenticate_user(self.user)
        self.assertEqual(self.active_ids(restarted), [reminder.id])

    def test_dismiss_is_not_persisted(self):
        reminder = self.make(date(2024, 1, 12))
        self.client.post(f'/api/v1/payment-reminders/{reminder.id}/dismiss/')
        reminder.refresh_from_db()
        self.assertFalse(reminder.is_acknowledged)
        self.assertIsNone(reminder.acknowledged_at)

    def test_dismiss_twice(self):
        reminder = self.make(date(2024, 1, 12))
        first = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/dismiss/')
        second = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/dismiss/')
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(self.active_ids(), [])

    def test_dismiss_unknown_reminder(self):
        response = self.client.post('/api/v1/payment-reminders/does-not-exist/dismiss/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AcknowledgeAPITests(ReminderAPITestCase):
    """Test POST /payment-reminders/<id>/acknowledge/ and PATCH acknowledgment"""

    def test_acknowledge(self):
        reminder = self.make(date(2024, 1, 12))
        response = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/acknowledge/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['isAcknowledged'])
        self.assertIsNotNone(response.data['acknowledgedAt'])
        self.assertEqual(self.active_ids(), [])

    def test_acknowledge_twice_is_a_noop_success(self):
        reminder = self.make(date(2024, 1, 12))
        first = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/acknowledge/')
        second = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/acknowledge/')
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['acknowledgedAt'], second.data['acknowledgedAt'])
        self.assertEqual(AuditLog.objects.filter(action='reminder_acknowledge').count(), 1)

    def test_acknowledge_is_permanent_across_sessions(self):
        reminder = self.make(date(2024, 1, 12))
        self.client.post(f'/api/v1/payment-reminders/{reminder.id}/acknowledge/')
        other = AuthenticatedAPIClient()
        other.authenticate_user(TestDataFactory.create_user())
        self.assertEqual(self.active_ids(other), [])

    def test_acknowledge_unknown_reminder(self):
        response = self.client.post('/api/v1/payment-reminders/does-not-exist/acknowledge/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_acknowledges(self):
        reminder = self.make(date(2024, 1, 12))
        response = self.client.patch(f'/api/v1/payment-reminders/{reminder.id}/', {'isAcknowledged': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['isAcknowledged'])

    def test_patch_cannot_reopen(self):
        reminder = self.make(date(2024, 1, 12), is_acknowledged=True)
        response = self.client.patch(f'/api/v1/payment-reminders/{reminder.id}/', {'isAcknowledged': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        reminder.refresh_from_db()
        self.assertTrue(reminder.is_acknowledged)


class ReminderCRUDAPITests(ReminderAPITestCase):
    """Test the management list and detail endpoints"""

    def test_create_reminder(self):
        data = {
            'catererId': self.caterer.id,
            'amount': '2500.00',
            'billNumber': 'B100',
            'originalDueDate': '2024-01-12',
            'notes': 'Wedding order',
        }
        response = self.client.post(f'/api/v1/payment-reminders/?date={TODAY}', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['id']), 36)
        self.assertEqual(response.data['status'], 'pending')
        self.assertEqual(response.data['reminderDate'], TODAY)
        self.assertEqual(response.data['daysUntilDue'], 2)
        self.assertFalse(response.data['isAcknowledged'])

    def test_create_computes_status_from_due_date(self):
        data = {'catererId': self.caterer.id, 'amount': '100.00', 'originalDueDate': '2024-01-09'}
        response = self.client.post(f'/api/v1/payment-reminders/?date={TODAY}', data, format='json')
        self.assertEqual(response.data['status'], 'overdue')

    def test_create_accepts_iso_timestamp(self):
        data = {'catererId': self.caterer.id, 'amount': '100.00', 'originalDueDate': '2024-01-11T18:30:00.000Z'}
        with timezone.override(ZoneInfo('Asia/Kolkata')):
            response = self.client.post(f'/api/v1/payment-reminders/?date={TODAY}', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['originalDueDate'], '2024-01-12')

    def test_create_cannot_set_acknowledged(self):
        data = {'catererId': self.caterer.id, 'amount': '100.00', 'originalDueDate': '2024-01-12', 'isAcknowledged': True}
        response = self.client.post('/api/v1/payment-reminders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(PaymentReminder.objects.get(pk=response.data['id']).is_acknowledged)

    def test_create_requires_due_date(self):
        data = {'catererId': self.caterer.id, 'amount': '100.00'}
        response = self.client.post('/api/v1/payment-reminders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('originalDueDate', response.data)

    def test_create_rejects_non_positive_amount(self):
        data = {'catererId': self.caterer.id, 'amount': '0', 'originalDueDate': '2024-01-12'}
        response = self.client.post('/api/v1/payment-reminders/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data)

    def test_list_reminders(self):
        self.make(date(2024, 1, 12))
        self.make(date(2024, 1, 5), is_acknowledged=True)
        response = self.client.get('/api/v1/payment-reminders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)

    def test_list_filters(self):
        other = TestDataFactory.create_caterer()
        self.make(date(2024, 1, 12))
        self.make(date(2024, 1, 5), is_acknowledged=True)
        TestDataFactory.create_reminder(caterer=other, original_due_date=date(2024, 1, 20))

        response = self.client.get(f'/api/v1/payment-reminders/?caterer={other.id}')
        self.assertEqual(len(response.data), 1)
        response = self.client.get('/api/v1/payment-reminders/?acknowledged=false')
        self.assertEqual(len(response.data), 2)
        response = self.client.get('/api/v1/payment-reminders/?acknowledged=true')
        self.assertEqual(len(response.data), 1)

    def test_list_priority_ordering(self):
        pending = self.make(date(2024, 1, 20))
        overdue = self.make(date(2024, 1, 5))
        due_today = self.make(date(2024, 1, 10))
        response = self.client.get(f'/api/v1/payment-reminders/?ordering=priority&date={TODAY}')
        self.assertEqual([r['id'] for r in response.data], [overdue.id, due_today.id, pending.id])

    def test_list_reflects_acknowledge_after_caching(self):
        reminder = self.make(date(2024, 1, 12))
        first = self.client.get('/api/v1/payment-reminders/')
        self.assertFalse(first.data[0]['isAcknowledged'])
        self.client.post(f'/api/v1/payment-reminders/{reminder.id}/acknowledge/')
        second = self.client.get('/api/v1/payment-reminders/')
        self.assertTrue(second.data[0]['isAcknowledged'])

    def test_list_rejects_non_numeric_caterer(self):
        response = self.client.get('/api/v1/payment-reminders/?caterer=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_list_hides_reminder_until_next_reminder_date(self):
        reminder = self.make(date(2024, 1, 20))
        self.client.post(
            f'/api/v1/payment-reminders/{reminder.id}/next-reminder/',
            {'nextReminderDate': '2024-01-11'},
            format='json'
        )

        response = self.client.get(f'/api/v1/payment-reminders/?date={TODAY}')
        self.assertEqual(response.data, [])

        response = self.client.get(f'/api/v1/payment-reminders/?date={TODAY}&include_snoozed=1')
        self.assertEqual([r['id'] for r in response.data], [reminder.id])

        response = self.client.get('/api/v1/payment-reminders/?date=2024-01-11')
        self.assertEqual([r['id'] for r in response.data], [reminder.id])

    def test_snoozed_reminder_still_in_active_list(self):
        reminder = self.make(date(2024, 1, 12))
        lifecycle.set_next_reminder(reminder.id, date(2024, 1, 11))
        self.assertEqual(self.active_ids(), [reminder.id])

    def test_get_detail(self):
        reminder = self.make(date(2024, 1, 12), bill_number='B007')
        response = self.client.get(f'/api/v1/payment-reminders/{reminder.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['billNumber'], 'B007')

    def test_get_unknown_detail(self):
        response = self.client.get('/api/v1/payment-reminders/does-not-exist/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_due_date_recomputes_status(self):
        reminder = self.make(date(2024, 1, 12), status='pending')
        response = self.client.patch(
            f'/api/v1/payment-reminders/{reminder.id}/',
            {'originalDueDate': '2020-01-01', 'notes': 'moved'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'overdue')
        self.assertEqual(response.data['notes'], 'moved')

    def test_patch_after_concurrent_acknowledge(self):
        reminder = self.make(date(2024, 1, 12))
        stale = PaymentReminder.objects.select_related('caterer').get(pk=reminder.id)
        lifecycle.acknowledge(reminder.id)
        with patch('backend.reminders.views._get_reminder', return_value=stale):
            response = self.client.patch(
                f'/api/v1/payment-reminders/{reminder.id}/', {'notes': 'late edit'}, format='json'
            )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        reminder.refresh_from_db()
        self.assertTrue(reminder.is_acknowledged)
        self.assertEqual(reminder.notes, '')

    def test_delete(self):
        reminder = self.make(date(2024, 1, 12), bill_number='B009')
        response = self.client.delete(f'/api/v1/payment-reminders/{reminder.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PaymentReminder.objects.filter(pk=reminder.id).exists())
        self.assertTrue(AuditLog.objects.filter(action='delete', object_id=reminder.id).exists())


class ReadAndNextReminderAPITests(ReminderAPITestCase):

    def test_mark_read(self):
        reminder = self.make(date(2024, 1, 12))
        response = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['isRead'])
        self.assertEqual(self.active_ids(), [reminder.id])

    def test_set_next_reminder(self):
        reminder = self.make(date(2024, 1, 20))
        response = self.client.post(
            f'/api/v1/payment-reminders/{reminder.id}/next-reminder/',
            {'nextReminderDate': '2024-01-15'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['nextReminderDate'], '2024-01-15')

    def test_next_reminder_requires_date(self):
        reminder = self.make(date(2024, 1, 20))
        response = self.client.post(f'/api/v1/payment-reminders/{reminder.id}/next-reminder/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_next_reminder_on_acknowledged(self):
        reminder = self.make(date(2024, 1, 20), is_acknowledged=True)
        response = self.client.post(
            f'/api/v1/payment-reminders/{reminder.id}/next-reminder/',
            {'nextReminderDate': '2024-01-15'},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)


class NotificationAPITests(ReminderAPITestCase):

    def test_notifications_follow_active_rule(self):
        reminder = self.make(date(2024, 1, 12), bill_number='B001', amount=Decimal('2500.00'))
        self.make(date(2024, 1, 11))
        response = self.client.get(f'/api/v1/notifications/?date={TODAY}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['count'], 1)
        card = response.data['data'][0]
        self.assertEqual(card['id'], f'payment-{reminder.id}')
        self.assertEqual(card['type'], 'payment_reminder')
        self.assertEqual(card['title'], 'Payment Due: Annapurna Caterers')
        self.assertEqual(card['message'], '₹2,500.00 due on 12 Jan 2024')
        self.assertEqual(card['priority'], 'high')
        self.assertEqual(card['data']['billNumber'], 'B001')

    def test_notifications_respect_dismissal(self):
        reminder = self.make(date(2024, 1, 12))
        self.client.post(f'/api/v1/payment-reminders/{reminder.id}/dismiss/')
        response = self.client.get(f'/api/v1/notifications/?date={TODAY}')
        self.assertEqual(response.data['count'], 0)
