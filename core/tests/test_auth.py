from datetime import timedelta
from smtplib import SMTPException
from unittest.mock import patch

from django.core import mail
from django.core.cache import cache
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase
from rest_framework_simplejwt.tokens import AccessToken

from core.models import User

from .helpers import make_admin, make_user


class RegisterTest(APITestCase):
    url = '/api/auth/register/'

    def setUp(self):
        cache.clear()

    def payload(self, **overrides):
        data = {'name': 'Jane Doe', 'email': 'jane@example.com', 'password': 'password123'}
        data.update(overrides)
        return data

    def test_register_creates_unverified_guest(self):
        response = self.client.post(self.url, self.payload(role='admin', company='Acme'))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['user']['is_email_verified'])

        user = User.objects.get(email='jane@example.com')
        self.assertEqual(user.role, User.Role.GUEST)
        self.assertEqual(user.company, 'Acme')
        self.assertEqual(len(user.email_verification_token), 64)
        self.assertGreater(user.email_verification_expires, timezone.now() + timedelta(hours=23))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ['jane@example.com'])
        self.assertIn(user.email_verification_token, mail.outbox[0].body)

    def test_duplicate_email_conflicts(self):
        make_user('jane@example.com')
        response = self.client.post(self.url, self.payload(email='Jane@Example.com'))
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['detail'], 'Email already exists')
        self.assertEqual(response.data['status_code'], 409)

    def test_short_password_rejected(self):
        response = self.client.post(self.url, self.payload(password='short'))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data)

    def test_mail_failure_does_not_fail_signup(self):
        with patch('core.emails.send_mail', side_effect=SMTPException('down')):
            response = self.client.post(self.url, self.payload())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.filter(email='jane@example.com').exists())

    def test_register_is_throttled(self):
        for i in range(3):
            response = self.client.post(self.url, self.payload(email=f'user{i}@example.com'))
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(self.url, self.payload(email='user3@example.com'))
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)


class LoginTest(APITestCase):
    url = '/api/auth/login/'

    def setUp(self):
        cache.clear()
        self.user = make_user('jane@example.com', 'password123', name='Jane')

    def test_login_returns_tokens_and_user(self):
        response = self.client.post(self.url, {'email': 'jane@example.com', 'password': 'password123'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], 'jane@example.com')
        self.assertEqual(response.data['user']['role'], 'guest')
        self.assertIn('refresh_token', response.data)

        token = AccessToken(response.data['access_token'])
        self.assertEqual(token['email'], 'jane@example.com')
        self.assertEqual(token['role'], 'guest')
        self.assertEqual(token['user_id'], str(self.user.id))

    def test_access_token_authenticates(self):
        response = self.client.post(self.url, {'email': 'jane@example.com', 'password': 'password123'})
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access_token']}")
        profile = self.client.get('/api/auth/profile/')
        self.assertEqual(profile.status_code, status.HTTP_200_OK)
        self.assertEqual(profile.data['email'], 'jane@example.com')

    def test_refresh_issues_new_access_token(self):
        response = self.client.post(self.url, {'email': 'jane@example.com', 'password': 'password123'})
        refreshed = self.client.post('/api/auth/token/refresh/', {'refresh': response.data['refresh_token']})
        self.assertEqual(refreshed.status_code, status.HTTP_200_OK)
        self.assertIn('access', refreshed.data)

    def test_bad_password_is_unauthorized(self):
        response = self.client.post(self.url, {'email': 'jane@example.com', 'password': 'wrong-pass'})
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_login_is_throttled(self):
        for _ in range(5):
            self.client.post(self.url, {'email': 'jane@example.com', 'password': 'wrong-pass'})
        response = self.client.post(self.url, {'email': 'jane@example.com', 'password': 'password123'})
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)


class ProfileAndRoleTest(APITestCase):
    def test_profile_requires_auth(self):
        response = self.client.get('/api/auth/profile/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['status_code'], 401)

    def test_admin_only_forbidden_for_guest(self):
        self.client.force_authenticate(user=make_user())
        response = self.client.get('/api/auth/admin-only/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], 'Forbidden - Admin role required')

    def test_admin_only_allows_admin(self):
        self.client.force_authenticate(user=make_admin())
        response = self.client.get('/api/auth/admin-only/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('message', response.data)


class VerifyEmailTest(APITestCase):
    url = '/api/auth/verify-email/'

    def setUp(self):
        self.user = make_user(
            'jane@example.com',
            email_verification_token='a' * 64,
            email_verification_expires=timezone.now() + timedelta(hours=1),
        )

    def test_valid_token_verifies(self):
        response = self.client.post(self.url, {'token': 'a' * 64})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.is_email_verified)
        self.assertIsNone(self.user.email_verification_token)
        self.assertIsNone(self.user.email_verification_expires)

    def test_expired_token_rejected(self):
        self.user.email_verification_expires = timezone.now() - timedelta(minutes=1)
        self.user.save()
        response = self.client.post(self.url, {'token': 'a' * 64})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Invalid or expired verification token')

    def test_unknown_token_rejected(self):
        response = self.client.post(self.url, {'token': 'b' * 64})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_resend_via_get_issues_new_token(self):
        response = self.client.get(self.url, {'email': 'jane@example.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertNotEqual(self.user.email_verification_token, 'a' * 64)
        self.assertEqual(len(mail.outbox), 1)

    def test_resend_unknown_user(self):
        response = self.client.post('/api/auth/resend-verification/', {'email': 'nobody@example.com'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'User not found')

    def test_resend_already_verified(self):
        self.user.is_email_verified = True
        self.user.save()
        response = self.client.post('/api/auth/resend-verification/', {'email': 'jane@example.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Email is already verified')
        self.assertEqual(len(mail.outbox), 0)

    def test_resend_mail_failure_is_reported(self):
        with patch('core.emails.send_mail', side_effect=SMTPException('down')):
            response = self.client.post('/api/auth/resend-verification/', {'email': 'jane@example.com'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['detail'], 'Failed to send verification email')


class HealthTest(APITestCase):
    def test_health_reports_database(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')
        self.assertEqual(response.data['services']['database'], 'connected')

    def test_public_health(self):
        response = self.client.get('/api/public/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')
