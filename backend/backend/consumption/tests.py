from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from common.errors import ForbiddenError
from groups.models import Membership
from groups.services import GroupService

from .models import Consumption
from .services import ConsumptionService

User = get_user_model()


class ConsumptionServiceTests(TestCase):
    def setUp(self):
        self.alice = User.objects.create_user(username='alice', email='alice@example.com')
        self.bob = User.objects.create_user(username='bob', email='bob@example.com')
        self.carol = User.objects.create_user(username='carol', email='carol@example.com')
        self.group = GroupService(notifier=lambda message: None).create(self.alice, 'House')
        Membership.objects.create(user=self.bob, group=self.group)
        self.service = ConsumptionService()

    def test_date_defaults_to_now(self):
        before = timezone.now()
        consumption = self.service.create(self.alice, {'amount': Decimal('3.20'), 'description': 'Coffee'})
        self.assertGreaterEqual(consumption.date, before)

    def test_group_consumption_requires_membership(self):
        with self.assertRaises(ForbiddenError):
            self.service.create(self.carol, {
                'amount': Decimal('10'), 'description': 'Sneaky', 'groupId': self.group.id,
            })

    def test_list_includes_group_consumptions_newest_first(self):
        now = timezone.now()
        own = self.service.create(self.bob, {
            'amount': Decimal('5'), 'description': 'Lunch', 'date': now - timedelta(days=2),
        })
        shared = self.service.create(self.alice, {
            'amount': Decimal('40'), 'description': 'Groceries', 'date': now, 'groupId': self.group.id,
        })
        self.service.create(self.carol, {'amount': Decimal('1'), 'description': 'Private'})

        self.assertEqual(list(self.service.list_for_user(self.bob)), [shared, own])


class ConsumptionAPITests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username='alice', email='alice@example.com')
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def test_create_and_list(self):
        response = self.client.post('/api/consumption', {'amount': '12.50', 'description': 'Taxi'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['amount'], '12.50')
        self.assertIsNone(response.data['groupId'])

        listing = self.client.get('/api/consumption')
        self.assertEqual([c['description'] for c in listing.data], ['Taxi'])
        self.assertEqual(Consumption.objects.count(), 1)

    def test_amount_is_required(self):
        response = self.client.post('/api/consumption', {'description': 'Nothing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('amount', response.data['message'])

    def test_requires_authentication(self):
        self.assertEqual(APIClient().get('/api/consumption').status_code, status.HTTP_401_UNAUTHORIZED)
