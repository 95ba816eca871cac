import time
import uuid

import jwt
from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from .supabase_jwt import get_jwt_secret, validate_user

User = get_user_model()

SECRET = 'test-jwt-secret'


def make_token(sub, email, secret=SECRET, expires_in=3600, **claims):
    payload = {
        'sub': str(sub),
        'email': email,
        'exp': int(time.time()) + expires_in,
        'aud': 'authenticated',
        **claims,
    }
    return jwt.encode(payload, secret, algorithm='HS256')


@override_settings(SUPABASE_JWT_SECRET=SECRET)
class SupabaseJWTAuthenticationTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.subject = uuid.uuid4()

    def test_valid_token_creates_user(self):
        token = make_token(
            self.subject, 'ada@example.com',
            user_metadata={'full_name': 'Ada Lovelace', 'avatar_url': 'https://example.com/a.png'},
        )
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.get('/api/users/me')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], str(self.subject))
        self.assertEqual(response.data['name'], 'Ada Lovelace')
        self.assertEqual(response.data['avatarUrl'], 'https://example.com/a.png')
        self.assertTrue(User.objects.filter(pk=self.subject).exists())

    def test_existing_user_is_reused(self):
        User.objects.create_user(username='ada', email='ada@example.com', id=self.subject, name='Ada')
        token = make_token(self.subject, 'ada@example.com')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/users/me')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(User.objects.count(), 1)
        self.assertEqual(response.data['name'], 'Ada')

    def test_expired_token_is_rejected(self):
        token = make_token(self.subject, 'ada@example.com', expires_in=-60)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/users/me')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Token has expired')

    def test_wrong_signature_is_rejected(self):
        token = make_token(self.subject, 'ada@example.com', secret='other-secret')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get('/api/users/me')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(User.objects.exists())

    def test_missing_token_on_protected_route(self):
        response = self.client.get('/api/users/me')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_email_conflict_falls_back_to_existing_row(self):
        existing = User.objects.create_user(username='legacy', email='ada@example.com')

        user = validate_user({'sub': str(self.subject), 'email': 'ada@example.com'})

        self.assertEqual(user.pk, existing.pk)
        self.assertEqual(User.objects.count(), 1)


class JWTSecretTests(TestCase):
    @override_settings(SUPABASE_JWT_SECRET='"quoted-secret"')
    def test_surrounding_quotes_are_stripped(self):
        self.assertEqual(get_jwt_secret(), 'quoted-secret')

    @override_settings(SUPABASE_JWT_SECRET=None, JWT_SECRET='fallback')
    def test_falls_back_to_jwt_secret(self):
        self.assertEqual(get_jwt_secret(), 'fallback')


@override_settings(SUPABASE_JWT_SECRET=SECRET)
class UserSearchTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='me', email='me@example.com', name='Me')
        User.objects.create_user(username='grace', email='grace@navy.mil', name='Grace Hopper')
        User.objects.create_user(username='alan', email='alan@example.com', name='Alan Turing')
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_search_matches_name_case_insensitively(self):
        response = self.client.get('/api/users/search', {'q': 'hopper'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['email'] for u in response.data], ['grace@navy.mil'])

    def test_search_matches_email(self):
        response = self.client.get('/api/users/search', {'q': 'EXAMPLE.COM'})
        self.assertEqual(
            [u['email'] for u in response.data],
            ['alan@example.com', 'me@example.com'],
        )

    def test_search_is_capped_at_ten(self):
        for i in range(12):
            User.objects.create_user(username=f'bulk{i}', email=f'bulk{i}@bulk.io')
        response = self.client.get('/api/users/search', {'q': 'bulk'})
        self.assertEqual(len(response.data), 10)

    def test_empty_query_returns_nothing(self):
        response = self.client.get('/api/users/search', {'q': ''})
        self.assertEqual(response.data, [])
