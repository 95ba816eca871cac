import time
import uuid
from decimal import Decimal
from unittest import mock

import jwt
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.contrib.auth import get_user_model
from django.test import TestCase, TransactionTestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from common.errors import ConflictError, ForbiddenError, NotFoundError
from consumption.models import Consumption

from .models import Group, Membership, Message
from .routing import websocket_urlpatterns
from .services import FEE_MESSAGE, GroupService

User = get_user_model()


def make_user(name):
    return User.objects.create_user(username=name, email=f"{name}@example.com", name=name.title())


class GroupServiceTests(TestCase):
    def setUp(self):
        self.owner = make_user('owner')
        self.friend = make_user('friend')
        self.stranger = make_user('stranger')
        self.sent = []
        self.service = GroupService(notifier=self.sent.append)
        self.group = self.service.create(self.owner, 'Flatmates')

    def test_creator_becomes_admin(self):
        membership = Membership.objects.get(group=self.group, user=self.owner)
        self.assertEqual(membership.role, Membership.ROLE_ADMIN)

    def test_list_only_returns_own_groups(self):
        self.service.create(self.stranger, 'Elsewhere')
        self.assertEqual([g.name for g in self.service.list_for_user(self.owner)], ['Flatmates'])

    def test_get_checks_existence_then_membership(self):
        with self.assertRaises(NotFoundError):
            self.service.get(self.owner, uuid.uuid4())
        with self.assertRaises(ForbiddenError):
            self.service.get(self.stranger, self.group.id)
        self.assertEqual(self.service.get(self.owner, self.group.id), self.group)

    def test_invite(self):
        membership = self.service.invite(self.owner, self.group.id, 'friend@example.com')
        self.assertEqual(membership.user, self.friend)
        self.assertEqual(membership.role, Membership.ROLE_MEMBER)

    def test_invite_requires_membership(self):
        with self.assertRaises(ForbiddenError):
            self.service.invite(self.stranger, self.group.id, 'friend@example.com')

    def test_invite_unknown_email(self):
        with self.assertRaises(NotFoundError) as ctx:
            self.service.invite(self.owner, self.group.id, 'nobody@example.com')
        self.assertEqual(ctx.exception.message, 'User with that email not found. Please ask them to login first.')

    def test_invite_existing_member(self):
        self.service.invite(self.owner, self.group.id, 'friend@example.com')
        with self.assertRaises(ConflictError) as ctx:
            self.service.invite(self.owner, self.group.id, 'friend@example.com')
        self.assertEqual(ctx.exception.message, 'User is already a member')

    def test_messages_are_ascending_and_broadcast(self):
        with self.captureOnCommitCallbacks(execute=True):
            first = self.service.send_message(self.owner, self.group.id, 'hello')
            second = self.service.send_message(self.owner, self.group.id, 'again')

        self.assertEqual(list(self.service.get_messages(self.owner, self.group.id)), [first, second])
        self.assertEqual(self.sent, [first, second])

    def test_consumption_only_message_gets_default_content(self):
        fee = Consumption.objects.create(amount=Decimal('12.50'), description='Pizza', user=self.owner, group=self.group)
        message = self.service.send_message(self.owner, self.group.id, consumption_id=fee.id)
        self.assertEqual(message.content, FEE_MESSAGE)
        self.assertEqual(message.consumption, fee)

    def test_non_member_cannot_read_or_post(self):
        with self.assertRaises(ForbiddenError):
            self.service.get_messages(self.stranger, self.group.id)
        with self.assertRaises(ForbiddenError):
            self.service.send_message(self.stranger, self.group.id, 'hi')
        self.assertFalse(Message.objects.exists())


class GroupAPITests(TestCase):
    def setUp(self):
        self.user = make_user('owner')
        make_user('friend')
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)
        patcher = mock.patch('groups.services.broadcast_message')
        self.broadcast = patcher.start()
        self.addCleanup(patcher.stop)

    def create_group(self, name='Trip'):
        return self.client.post('/api/groups', {'name': name}, format='json')

    def test_requires_authentication(self):
        response = APIClient().get('/api/groups')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_and_list(self):
        created = self.create_group()
        self.assertEqual(created.status_code, status.HTTP_201_CREATED)
        self.assertEqual(created.data['members'][0]['role'], 'admin')

        response = self.client.get('/api/groups')
        self.assertEqual([g['name'] for g in response.data], ['Trip'])

    def test_invite_conflict_maps_to_409(self):
        group_id = self.create_group().data['id']
        url = f'/api/groups/{group_id}/invite'

        self.assertEqual(self.client.post(url, {'email': 'friend@example.com'}, format='json').status_code, 201)
        response = self.client.post(url, {'email': 'friend@example.com'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error'], 'Conflict')

    def test_post_and_read_messages(self):
        group_id = self.create_group().data['id']
        url = f'/api/groups/{group_id}/messages'

        response = self.client.post(url, {'content': 'hello'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'owner@example.com')

        messages = self.client.get(url).data
        self.assertEqual([m['content'] for m in messages], ['hello'])

    def test_empty_message_is_rejected(self):
        group_id = self.create_group().data['id']
        response = self.client.post(f'/api/groups/{group_id}/messages', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_group(self):
        response = self.client.get(f'/api/groups/{uuid.uuid4()}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


SECRET = 'socket-secret'


@override_settings(
    SUPABASE_JWT_SECRET=SECRET,
    CHANNEL_LAYERS={'default': {'BACKEND': 'channels.layers.InMemoryChannelLayer'}},
)
class GroupChatConsumerTests(TransactionTestCase):
    def setUp(self):
        self.user = make_user('owner')
        self.group = GroupService(notifier=lambda message: None).create(self.user, 'Chat')
        self.token = jwt.encode(
            {'sub': str(self.user.id), 'email': self.user.email, 'exp': int(time.time()) + 600},
            SECRET, algorithm='HS256',
        )

    def communicator(self, query=''):
        return WebsocketCommunicator(URLRouter(websocket_urlpatterns), f"/ws/groups/{self.group.id}/chat/{query}")

    async def test_rejects_missing_token(self):
        communicator = self.communicator()
        connected, code = await communicator.connect()
        self.assertFalse(connected)
        self.assertEqual(code, 4001)

    async def test_member_receives_posted_messages(self):
        communicator = self.communicator(f"?token={self.token}")
        connected, _ = await communicator.connect()
        self.assertTrue(connected)

        await communicator.send_json_to({'content': 'hi all'})
        event = await communicator.receive_json_from(timeout=5)

        self.assertEqual(event['type'], 'message')
        self.assertEqual(event['message']['content'], 'hi all')
        await communicator.disconnect()
