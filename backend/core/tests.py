"""
Test suite for Core module
Tests: token login, current user endpoint, audit logging helper and audit log API
"""
from django.test import TestCase, RequestFactory
from rest_framework import status
from backend.core.models import AuditLog
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import create_audit_log, get_client_ip


class AuthTests(TestCase):
    """Test token authentication endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user(username='clerk', password='testpass123')
        self.client = AuthenticatedAPIClient()

    def test_login_returns_tokens(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'clerk', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_with_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {'username': 'clerk', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_user_me(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'clerk')
        self.assertFalse(response.data['is_admin'])

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/payment-reminders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class AuditLogTests(TestCase):
    """Test audit log helper and endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.factory = RequestFactory()

    def test_get_client_ip_prefers_forwarded_header(self):
        request = self.factory.get('/', HTTP_X_FORWARDED_FOR='10.0.0.5, 10.0.0.1', REMOTE_ADDR='127.0.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.5')

    def test_get_client_ip_without_request(self):
        self.assertIsNone(get_client_ip(None))

    def test_create_audit_log(self):
        entry = create_audit_log(
            user=self.user,
            action='reminder_acknowledge',
            model_name='PaymentReminder',
            object_id='abc',
            object_reference='B-001',
        )
        self.assertIsNotNone(entry)
        self.assertEqual(entry.user, self.user)
        self.assertEqual(entry.object_reference, 'B-001')

    def test_create_audit_log_skips_missing_fields(self):
        self.assertIsNone(create_audit_log(user=self.user, action='delete', model_name='PaymentReminder'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_list_only_shows_own_entries(self):
        other = TestDataFactory.create_user()
        create_audit_log(user=self.user, action='delete', model_name='PaymentReminder', object_id='1')
        create_audit_log(user=other, action='delete', model_name='PaymentReminder', object_id='2')

        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get('/api/v1/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e['object_id'] for e in response.data], ['1'])

    def test_audit_log_detail_permission_denied(self):
        other = TestDataFactory.create_user()
        entry = create_audit_log(user=other, action='delete', model_name='PaymentReminder', object_id='2')

        client = AuthenticatedAPIClient()
        client.authenticate_user(self.user)
        response = client.get(f'/api/v1/audit-logs/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
